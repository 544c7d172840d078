import asyncio
from datetime import datetime
from uuid import UUID

from bloggers.core.modules.device.models import Device
from bloggers.utils import now


class MemorySessionStore:
    """Process-local session store with the same contract as DeviceService.

    Writes are serialized through a lock so rotation keeps its compare-and-swap semantics
    when several request tasks share the store.
    """

    def __init__(self) -> None:
        self._devices: dict[UUID, Device] = {}
        self._lock = asyncio.Lock()

    async def create(self, device: Device) -> Device:
        async with self._lock:
            if device.device_id in self._devices:
                raise ValueError(f"Device '{device.device_id}' already exists")
            self._devices[device.device_id] = device.model_copy()
        return device

    async def find_by_device_id(self, device_id: UUID) -> Device | None:
        device = self._devices.get(device_id)
        return device.model_copy() if device is not None else None

    async def find_by_user_id(self, user_id: UUID) -> list[Device]:
        devices = [d.model_copy() for d in self._devices.values() if d.user_id == user_id]
        return sorted(devices, key=lambda d: d.last_active_date, reverse=True)

    async def update_refresh_token(
        self, device_id: UUID, refresh_token: str, expires_at: datetime, expected_token: str | None = None
    ) -> bool:
        async with self._lock:
            device = self._devices.get(device_id)
            if device is None:
                return False
            if expected_token is not None and device.refresh_token != expected_token:
                return False
            self._devices[device_id] = device.model_copy(
                update={"refresh_token": refresh_token, "expires_at": expires_at, "last_active_date": now()}
            )
            return True

    async def delete_by_device_id(self, device_id: UUID) -> bool:
        async with self._lock:
            return self._devices.pop(device_id, None) is not None

    async def delete_other_devices_by_user_id(self, user_id: UUID, keep_device_id: UUID) -> int:
        async with self._lock:
            doomed = [d.device_id for d in self._devices.values() if d.user_id == user_id and d.device_id != keep_device_id]
            for device_id in doomed:
                del self._devices[device_id]
            return len(doomed)

    async def delete_expired_devices(self) -> int:
        async with self._lock:
            timestamp = now()
            expired = [d.device_id for d in self._devices.values() if d.expires_at < timestamp]
            for device_id in expired:
                del self._devices[device_id]
            return len(expired)
