"""Tests for the MongoDB user directory against a mocked collection."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from bloggers.core.modules.user.models import User
from bloggers.core.modules.user.service import UserService
from bloggers.utils import now


class FakeCursor:
    """Async-iterable stand-in for an AsyncCursor."""

    def __init__(self, documents):
        self._documents = documents

    def limit(self, _count):
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._documents:
            yield document


def make_service(collection):
    database = MagicMock()
    database.get_collection.return_value = collection
    return UserService(database)


def user_document(login, email):
    return User(login=login, email=email, password_hash="hash").to_mongo()


class TestFindByLoginOrEmail:
    def test_prefers_login_match(self):
        collection = MagicMock()
        collection.find.return_value = FakeCursor(
            [user_document("bob", "alice@example.com"), user_document("alice", "other@example.com")]
        )
        service = make_service(collection)

        user = asyncio.run(service.find_by_login_or_email("alice", "alice@example.com"))

        assert user.login == "alice"
        collection.find.assert_called_once_with({"$or": [{"login": "alice"}, {"email": "alice@example.com"}]})

    def test_falls_back_to_email_match(self):
        collection = MagicMock()
        collection.find.return_value = FakeCursor([user_document("bob", "alice@example.com")])
        service = make_service(collection)

        assert asyncio.run(service.find_by_login_or_email("alice", "alice@example.com")).login == "bob"

    def test_no_match(self):
        collection = MagicMock()
        collection.find.return_value = FakeCursor([])
        service = make_service(collection)

        assert asyncio.run(service.find_by_login_or_email("alice", "alice@example.com")) is None


class TestCodeUpdates:
    def test_confirm_user_filters_on_code(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
        service = make_service(collection)

        assert asyncio.run(service.confirm_user("c-1")) is True

        query, update = collection.update_one.call_args.args
        assert query == {"confirmation_info.confirmation_code": "c-1"}
        assert update["$set"]["confirmation_info.user_is_confirmed"] is True
        assert update["$set"]["confirmation_info.confirmation_code"] is None

    def test_confirm_user_reports_consumed_code(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=0))
        service = make_service(collection)

        assert asyncio.run(service.confirm_user("c-1")) is False

    def test_password_update_clears_recovery_fields(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
        service = make_service(collection)

        assert asyncio.run(service.update_password_by_recovery_code("r-1", "new-hash")) is True

        query, update = collection.update_one.call_args.args
        assert query == {"recovery_info.recovery_code": "r-1"}
        assert update == {
            "$set": {
                "password_hash": "new-hash",
                "recovery_info.recovery_code": None,
                "recovery_info.recovery_code_expired_at": None,
            }
        }

    def test_update_recovery_code_unknown_email(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
        service = make_service(collection)

        assert asyncio.run(service.update_recovery_code("nobody@example.com", "r-1", now())) is False
