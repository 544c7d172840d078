from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from bloggers.core.core import Service
from bloggers.core.modules.user.models import User

logger = structlog.get_logger(__name__)


class UserService(Service):
    """MongoDB-backed user directory."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("login", 1)], unique=True)
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("confirmation_info.confirmation_code", 1)])
        await self._collection.create_index([("recovery_info.recovery_code", 1)])
        logger.debug("user_service_started")

    async def find_by_login_or_email(self, login: str, email: str) -> User | None:
        """Find a user matching either field, preferring the login match.

        Login and email are each unique, so at most two documents can match.
        """
        cursor = self._collection.find({"$or": [{"login": login}, {"email": email}]}).limit(2)
        users = await User.list_cursor(cursor)
        return next((u for u in users if u.login == login), users[0] if users else None)

    async def find_by_id(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def find_by_email(self, email: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"email": email}))

    async def find_by_confirmation_code(self, code: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"confirmation_info.confirmation_code": code}))

    async def find_by_recovery_code(self, code: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"recovery_info.recovery_code": code}))

    async def create(self, user: User) -> User:
        await self._collection.insert_one(user.to_mongo())
        return user

    async def update_confirmation_code(self, email: str, code: str, expires_at: datetime) -> bool:
        result = await self._collection.update_one(
            {"email": email},
            {
                "$set": {
                    "confirmation_info.confirmation_code": code,
                    "confirmation_info.confirmation_code_expired_at": expires_at,
                }
            },
        )
        return result.matched_count > 0

    async def confirm_user(self, code: str) -> bool:
        result = await self._collection.update_one(
            {"confirmation_info.confirmation_code": code},
            {
                "$set": {
                    "confirmation_info.user_is_confirmed": True,
                    "confirmation_info.confirmation_code": None,
                    "confirmation_info.confirmation_code_expired_at": None,
                }
            },
        )
        return result.modified_count > 0

    async def update_recovery_code(self, email: str, code: str, expires_at: datetime) -> bool:
        result = await self._collection.update_one(
            {"email": email},
            {"$set": {"recovery_info.recovery_code": code, "recovery_info.recovery_code_expired_at": expires_at}},
        )
        return result.matched_count > 0

    async def update_password_by_recovery_code(self, code: str, password_hash: str) -> bool:
        result = await self._collection.update_one(
            {"recovery_info.recovery_code": code},
            {
                "$set": {
                    "password_hash": password_hash,
                    "recovery_info.recovery_code": None,
                    "recovery_info.recovery_code_expired_at": None,
                }
            },
        )
        return result.modified_count > 0
