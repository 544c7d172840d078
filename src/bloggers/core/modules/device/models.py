"""Device session models."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bloggers.core.db import MongoModel
from bloggers.utils import now


class Device(MongoModel):
    """One logged-in client instance.

    The device id is minted at login and stays stable across refreshes; refresh_token
    always holds the last token issued for the device, any other value is stale.
    Indexed on device_id - unique, user_id, expires_at (TTL).
    """

    device_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    title: str
    ip: str
    refresh_token: str
    last_active_date: datetime = Field(default_factory=now)
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime


class DeviceView(BaseModel):
    """Active session as shown to its owner (API representation)."""

    ip: str = Field(..., description="IP address the session was opened from")
    title: str = Field(..., description="Client descriptor, usually the user agent")
    last_active_date: datetime = Field(..., description="Last login or token refresh")
    device_id: UUID = Field(..., description="Device ID")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_domain(cls, device: Device) -> "DeviceView":
        return cls(ip=device.ip, title=device.title, last_active_date=device.last_active_date, device_id=device.device_id)
