from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from bloggers.core.core import Service
from bloggers.core.modules.device.models import Device
from bloggers.utils import now

logger = structlog.get_logger(__name__)


class DeviceService(Service):
    """MongoDB-backed session store, one document per logged-in device."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("devices")

    async def on_start(self) -> None:
        """Create indexes and drop sessions that expired while the server was down."""
        # Unique index for device_id (session lookups on every refresh)
        await self._collection.create_index([("device_id", 1)], unique=True)
        # Single index for user_id (listing and bulk deletion per user)
        await self._collection.create_index([("user_id", 1)])
        # TTL index removes sessions once expires_at has passed
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)
        removed = await self.delete_expired_devices()
        logger.debug("device_service_started", expired_removed=removed)

    async def create(self, device: Device) -> Device:
        await self._collection.insert_one(device.to_mongo())
        return device

    async def find_by_device_id(self, device_id: UUID) -> Device | None:
        return Device.from_mongo(await self._collection.find_one({"device_id": device_id}))

    async def find_by_user_id(self, user_id: UUID) -> list[Device]:
        return await Device.list_cursor(self._collection.find({"user_id": user_id}).sort("last_active_date", -1))

    async def update_refresh_token(
        self, device_id: UUID, refresh_token: str, expires_at: datetime, expected_token: str | None = None
    ) -> bool:
        """Rotate in a single conditional update; the filter on expected_token makes it a compare-and-swap."""
        query: dict[str, Any] = {"device_id": device_id}
        if expected_token is not None:
            query["refresh_token"] = expected_token
        result = await self._collection.update_one(
            query,
            {"$set": {"refresh_token": refresh_token, "expires_at": expires_at, "last_active_date": now()}},
        )
        return result.matched_count > 0

    async def delete_by_device_id(self, device_id: UUID) -> bool:
        result = await self._collection.delete_one({"device_id": device_id})
        return result.deleted_count > 0

    async def delete_other_devices_by_user_id(self, user_id: UUID, keep_device_id: UUID) -> int:
        result = await self._collection.delete_many({"user_id": user_id, "device_id": {"$ne": keep_device_id}})
        return result.deleted_count

    async def delete_expired_devices(self) -> int:
        result = await self._collection.delete_many({"expires_at": {"$lt": now()}})
        return result.deleted_count
