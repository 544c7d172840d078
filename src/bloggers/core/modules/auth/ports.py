"""Collaborator contracts consumed by AuthService."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from bloggers.core.modules.device.models import Device
from bloggers.core.modules.user.models import User


class UserDirectory(Protocol):
    """Lookup and mutation of user records."""

    async def find_by_login_or_email(self, login: str, email: str) -> User | None:
        """Single lookup against both fields; a login match wins over an email match."""

    async def find_by_id(self, user_id: UUID) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def find_by_confirmation_code(self, code: str) -> User | None: ...

    async def find_by_recovery_code(self, code: str) -> User | None: ...

    async def create(self, user: User) -> User: ...

    async def update_confirmation_code(self, email: str, code: str, expires_at: datetime) -> bool: ...

    async def confirm_user(self, code: str) -> bool:
        """Mark the holder of the code confirmed and clear both confirmation fields."""

    async def update_recovery_code(self, email: str, code: str, expires_at: datetime) -> bool: ...

    async def update_password_by_recovery_code(self, code: str, password_hash: str) -> bool:
        """Replace the password and clear the recovery fields in one update, so the code is single-use."""


class SessionStore(Protocol):
    """Per-device session records."""

    async def create(self, device: Device) -> Device: ...

    async def find_by_device_id(self, device_id: UUID) -> Device | None: ...

    async def find_by_user_id(self, user_id: UUID) -> list[Device]: ...

    async def update_refresh_token(
        self, device_id: UUID, refresh_token: str, expires_at: datetime, expected_token: str | None = None
    ) -> bool:
        """Rotate the stored token and touch last_active_date.

        With expected_token the update only applies while the stored token still equals it,
        so of two racing rotations exactly one wins.
        """

    async def delete_by_device_id(self, device_id: UUID) -> bool: ...

    async def delete_other_devices_by_user_id(self, user_id: UUID, keep_device_id: UUID) -> int: ...

    async def delete_expired_devices(self) -> int: ...


class NotificationGateway(Protocol):
    """Side-channel delivery of confirmation and recovery codes."""

    async def send_confirmation_email(self, email: str, code: str) -> None: ...

    async def send_password_recovery_email(self, email: str, code: str) -> None: ...
