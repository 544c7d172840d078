from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bloggers.core.db import MongoModel
from bloggers.utils import now


class ConfirmationInfo(BaseModel):
    """Email confirmation state.

    A pending user holds a code together with its expiry; a confirmed user holds neither.
    """

    user_is_confirmed: bool = False
    confirmation_code: str | None = None
    confirmation_code_expired_at: datetime | None = None


class RecoveryInfo(BaseModel):
    """Password recovery state, both fields set or both None."""

    recovery_code: str | None = None
    recovery_code_expired_at: datetime | None = None


class User(MongoModel):
    """User domain model with credentials.

    Indexed on login - unique, email - unique, confirmation and recovery codes.
    """

    login: str
    email: str
    password_hash: str  # bcrypt hash
    created_at: datetime = Field(default_factory=now)
    confirmation_info: ConfirmationInfo = Field(default_factory=ConfirmationInfo)
    recovery_info: RecoveryInfo = Field(default_factory=RecoveryInfo)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    login: str = Field(..., description="Login")
    email: str = Field(..., description="Email address")
    created_at: datetime = Field(..., description="Registration time")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, login=user.login, email=user.email, created_at=user.created_at)


class MeView(BaseModel):
    """Profile of the user owning the access token."""

    email: str
    login: str
    user_id: UUID

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_domain(cls, user: User) -> "MeView":
        return cls(email=user.email, login=user.login, user_id=user.id)
