from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bloggers.config import Config
from bloggers.core.modules.auth.passwords import MAX_PASSWORD_BYTES
from bloggers.core.modules.user.models import MeView
from bloggers.web.deps import REFRESH_TOKEN_COOKIE, AccessTokenDep, AppDep, ClientIpDep, ConfigDep, RefreshTokenDep
from bloggers.web.openapi import ErrorResponse, FieldErrorsResponse
from bloggers.web.rate_limit import rate_limit

router = APIRouter(tags=["auth"])

LOGIN_PATTERN = r"^[a-zA-Z0-9_-]*$"
EMAIL_PATTERN = r"^[\w.-]+@([\w-]+\.)+[\w-]{2,4}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def check_password_bytes(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
    return password


class LoginRequest(CamelModel):
    """Authentication request."""

    login_or_email: str = Field(..., min_length=1, description="Login or email of the account")
    password: str = Field(..., min_length=6, max_length=20, description="Account password")


class AccessTokenResponse(CamelModel):
    """Authentication response; the refresh token travels in an HTTP-only cookie."""

    access_token: str = Field(..., description="Bearer token for subsequent requests")


class RegistrationRequest(CamelModel):
    """New account data."""

    login: str = Field(..., min_length=3, max_length=10, pattern=LOGIN_PATTERN, description="Unique login")
    password: str = Field(..., min_length=6, max_length=20, description="Password")
    email: str = Field(..., pattern=EMAIL_PATTERN, description="Unique email address")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_bytes(v)


class ConfirmationRequest(CamelModel):
    code: str = Field(..., min_length=1, description="Confirmation code from the email")


class EmailRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, description="Account email address")


class NewPasswordRequest(CamelModel):
    new_password: str = Field(..., min_length=6, max_length=20, description="New password")
    recovery_code: str = Field(..., min_length=1, description="Recovery code from the email")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password_bytes(v)


def set_refresh_cookie(response: Response, refresh_token: str, config: Config) -> None:
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=config.cookie_secure,
        samesite="strict",
        max_age=config.refresh_token_ttl_seconds,
    )


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with login or email and password. Opens a new device session.",
    operation_id="login",
    dependencies=[Depends(rate_limit("login"))],
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def login(
    login_data: LoginRequest, request: Request, response: Response, app: AppDep, config: ConfigDep, client_ip: ClientIpDep
) -> AccessTokenResponse:
    device_title = request.headers.get("user-agent") or "Unknown device"
    tokens = await app.login(login_data.login_or_email, login_data.password, device_title, client_ip)
    set_refresh_cookie(response, tokens.refresh_token, config)
    return AccessTokenResponse(access_token=tokens.access_token)


@router.post(
    "/auth/refresh-token",
    summary="Rotate refresh token",
    description="Exchange the refresh token cookie for a new token pair. The presented token stops being valid.",
    operation_id="refreshToken",
    responses={
        200: {"description": "New token pair issued"},
        401: {"model": ErrorResponse, "description": "Missing, expired or superseded refresh token"},
    },
)
async def refresh_token(
    response: Response, app: AppDep, config: ConfigDep, refresh_token: RefreshTokenDep
) -> AccessTokenResponse:
    tokens = await app.refresh_tokens(refresh_token)
    set_refresh_cookie(response, tokens.refresh_token, config)
    return AccessTokenResponse(access_token=tokens.access_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="End the device session the refresh token cookie belongs to.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(response: Response, app: AppDep, refresh_token: RefreshTokenDep) -> None:
    await app.logout(refresh_token)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)


@router.post(
    "/auth/registration",
    summary="Register user",
    description="Create an unconfirmed account and send a confirmation email.",
    operation_id="registration",
    status_code=204,
    dependencies=[Depends(rate_limit("registration"))],
    responses={
        204: {"description": "Account created, confirmation email sent"},
        400: {"model": FieldErrorsResponse, "description": "Invalid data or login/email already taken"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def registration(data: RegistrationRequest, app: AppDep) -> None:
    await app.registration(data.login, data.password, data.email)


@router.post(
    "/auth/registration-confirmation",
    summary="Confirm registration",
    operation_id="registrationConfirmation",
    status_code=204,
    dependencies=[Depends(rate_limit("registration-confirmation"))],
    responses={
        204: {"description": "Email confirmed"},
        400: {"model": FieldErrorsResponse, "description": "Invalid or expired code"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def registration_confirmation(data: ConfirmationRequest, app: AppDep) -> None:
    await app.confirm_registration(data.code)


@router.post(
    "/auth/registration-email-resending",
    summary="Resend confirmation email",
    operation_id="registrationEmailResending",
    status_code=204,
    dependencies=[Depends(rate_limit("registration-email-resending"))],
    responses={
        204: {"description": "New confirmation code sent"},
        400: {"model": FieldErrorsResponse, "description": "Unknown or already confirmed email"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def registration_email_resending(data: EmailRequest, app: AppDep) -> None:
    await app.resend_confirmation_email(data.email)


@router.post(
    "/auth/password-recovery",
    summary="Request password recovery",
    description="Send a recovery code if the email is registered. Responds the same either way.",
    operation_id="passwordRecovery",
    status_code=204,
    dependencies=[Depends(rate_limit("password-recovery"))],
    responses={
        204: {"description": "Request accepted"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def password_recovery(data: EmailRequest, app: AppDep) -> None:
    await app.password_recovery(data.email)


@router.post(
    "/auth/new-password",
    summary="Set new password",
    operation_id="newPassword",
    status_code=204,
    dependencies=[Depends(rate_limit("new-password"))],
    responses={
        204: {"description": "Password changed"},
        400: {"model": FieldErrorsResponse, "description": "Invalid or expired recovery code"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def new_password(data: NewPasswordRequest, app: AppDep) -> None:
    await app.set_new_password(data.recovery_code, data.new_password)


@router.get(
    "/auth/me",
    summary="Get current user",
    operation_id="me",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def me(app: AppDep, access_token: AccessTokenDep) -> MeView:
    return await app.get_current_user(access_token)
