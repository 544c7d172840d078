"""Outcomes of the authentication flows."""

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

LOGIN_ALREADY_EXISTS = "User with this login already exists"
EMAIL_ALREADY_EXISTS = "User with this email already exists"
EMAIL_NOT_FOUND = "User with this email not found"
EMAIL_ALREADY_CONFIRMED = "User with this email already confirmed"
INVALID_CONFIRMATION_CODE = "Invalid confirmation code"
CONFIRMATION_CODE_EXPIRED = "Confirmation code expired"
INVALID_RECOVERY_CODE = "Invalid recovery code"
RECOVERY_CODE_EXPIRED = "Recovery code expired"


class FieldError(BaseModel):
    """Validation outcome naming the offending input field."""

    field: str
    message: str

    model_config = ConfigDict(frozen=True)


class AuthTokens(BaseModel):
    """Access and refresh token pair handed out on login and refresh."""

    access_token: str
    refresh_token: str

    model_config = ConfigDict(frozen=True)


class TokenError(StrEnum):
    """Why a token failed verification."""

    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class TokenPayload(BaseModel):
    """Verified token claims. Refresh tokens always carry device_id."""

    user_id: UUID
    device_id: UUID | None = None

    model_config = ConfigDict(frozen=True)


class SessionIdentity(BaseModel):
    """Owner and device of a refresh token that matches its live session."""

    user_id: UUID
    device_id: UUID

    model_config = ConfigDict(frozen=True)
