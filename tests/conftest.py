"""Shared pytest fixtures."""

import asyncio
from datetime import timedelta
from uuid import UUID

import bcrypt
import pytest
from fastapi.testclient import TestClient

from bloggers.app import App
from bloggers.config import Config
from bloggers.core.modules.auth.passwords import PasswordHasher
from bloggers.core.modules.auth.service import AuthService
from bloggers.core.modules.auth.tokens import TokenCodec
from bloggers.core.modules.device.memory import MemorySessionStore
from bloggers.core.modules.user.memory import MemoryUserDirectory
from bloggers.core.modules.user.models import ConfirmationInfo, User
from bloggers.web.server import create_fastapi_app

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"
PASSWORD = "secret1"


class RecordingNotificationGateway:
    """Collects outgoing emails instead of sending them."""

    def __init__(self) -> None:
        self.confirmations: list[tuple[str, str]] = []
        self.recoveries: list[tuple[str, str]] = []

    async def send_confirmation_email(self, email: str, code: str) -> None:
        self.confirmations.append((email, code))

    async def send_password_recovery_email(self, email: str, code: str) -> None:
        self.recoveries.append((email, code))


@pytest.fixture
def config():
    """Configuration for an app served over plain HTTP in tests."""
    return Config(
        database_url="mongodb://localhost:27017/bloggers_test",
        host="127.0.0.1",
        port=3000,
        debug=True,
        frontend_url="http://frontend.test",
        jwt_access_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        bcrypt_rounds=4,
        cookie_secure=False,
        rate_limit_max_requests=1000,
    )


@pytest.fixture
def tokens():
    return TokenCodec(ACCESS_SECRET, REFRESH_SECRET, timedelta(hours=1), timedelta(days=7))


@pytest.fixture
def users():
    return MemoryUserDirectory()


@pytest.fixture
def sessions():
    return MemorySessionStore()


@pytest.fixture
def notifications():
    return RecordingNotificationGateway()


@pytest.fixture
def auth_service(users, sessions, tokens, notifications):
    return AuthService(
        users=users,
        sessions=sessions,
        tokens=tokens,
        hasher=PasswordHasher(rounds=4),
        notifications=notifications,
    )


@pytest.fixture
def mock_user():
    """Create a confirmed user with password 'secret1'."""
    return User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        login="bob",
        email="bob@example.com",
        password_hash=bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode(),
        confirmation_info=ConfirmationInfo(user_is_confirmed=True),
    )


@pytest.fixture
def registered_user(users, mock_user):
    """Store mock_user in the in-memory directory."""
    return asyncio.run(users.create(mock_user))


@pytest.fixture
def app_instance(auth_service, sessions):
    return App(auth_service, sessions)


@pytest.fixture
def client(app_instance, config):
    """Serve the API over the in-memory stores."""
    with TestClient(create_fastapi_app(app_instance, config)) as test_client:
        yield test_client
