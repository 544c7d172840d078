from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from bloggers.core.modules.user.models import User


class MemoryUserDirectory:
    """Process-local user directory with the same contract as UserService."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}

    def _find(self, predicate: Callable[[User], bool]) -> User | None:
        user = next((u for u in self._users.values() if predicate(u)), None)
        return user.model_copy(deep=True) if user is not None else None

    async def find_by_login_or_email(self, login: str, email: str) -> User | None:
        return self._find(lambda u: u.login == login) or self._find(lambda u: u.email == email)

    async def find_by_id(self, user_id: UUID) -> User | None:
        return self._find(lambda u: u.id == user_id)

    async def find_by_email(self, email: str) -> User | None:
        return self._find(lambda u: u.email == email)

    async def find_by_confirmation_code(self, code: str) -> User | None:
        return self._find(lambda u: u.confirmation_info.confirmation_code == code)

    async def find_by_recovery_code(self, code: str) -> User | None:
        return self._find(lambda u: u.recovery_info.recovery_code == code)

    async def create(self, user: User) -> User:
        if any(u.login == user.login or u.email == user.email for u in self._users.values()):
            raise ValueError(f"User '{user.login}' already exists")
        self._users[user.id] = user.model_copy(deep=True)
        return user

    async def update_confirmation_code(self, email: str, code: str, expires_at: datetime) -> bool:
        user = next((u for u in self._users.values() if u.email == email), None)
        if user is None:
            return False
        user.confirmation_info.confirmation_code = code
        user.confirmation_info.confirmation_code_expired_at = expires_at
        return True

    async def confirm_user(self, code: str) -> bool:
        user = next((u for u in self._users.values() if u.confirmation_info.confirmation_code == code), None)
        if user is None:
            return False
        user.confirmation_info.user_is_confirmed = True
        user.confirmation_info.confirmation_code = None
        user.confirmation_info.confirmation_code_expired_at = None
        return True

    async def update_recovery_code(self, email: str, code: str, expires_at: datetime) -> bool:
        user = next((u for u in self._users.values() if u.email == email), None)
        if user is None:
            return False
        user.recovery_info.recovery_code = code
        user.recovery_info.recovery_code_expired_at = expires_at
        return True

    async def update_password_by_recovery_code(self, code: str, password_hash: str) -> bool:
        user = next((u for u in self._users.values() if u.recovery_info.recovery_code == code), None)
        if user is None:
            return False
        user.password_hash = password_hash
        user.recovery_info.recovery_code = None
        user.recovery_info.recovery_code_expired_at = None
        return True
