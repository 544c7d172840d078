import secrets
from datetime import timedelta
from uuid import UUID, uuid4

import structlog

from bloggers.core.modules.auth.models import (
    CONFIRMATION_CODE_EXPIRED,
    EMAIL_ALREADY_CONFIRMED,
    EMAIL_ALREADY_EXISTS,
    EMAIL_NOT_FOUND,
    INVALID_CONFIRMATION_CODE,
    INVALID_RECOVERY_CODE,
    LOGIN_ALREADY_EXISTS,
    RECOVERY_CODE_EXPIRED,
    AuthTokens,
    FieldError,
    SessionIdentity,
    TokenError,
)
from bloggers.core.modules.auth.passwords import PasswordHasher
from bloggers.core.modules.auth.ports import NotificationGateway, SessionStore, UserDirectory
from bloggers.core.modules.auth.tokens import TokenCodec
from bloggers.core.modules.device.models import Device
from bloggers.core.modules.user.models import ConfirmationInfo, User
from bloggers.utils import generate_code, now

logger = structlog.get_logger(__name__)


class AuthService:
    """Login, registration, confirmation, recovery and refresh-token rotation.

    Owns no state of its own: users live in the directory, sessions in the session store.
    Expected failures come back as None / FieldError, never as exceptions. Store and
    mail transport errors are not caught and propagate to the caller.
    """

    def __init__(
        self,
        users: UserDirectory,
        sessions: SessionStore,
        tokens: TokenCodec,
        hasher: PasswordHasher,
        notifications: NotificationGateway,
        confirmation_code_ttl: timedelta = timedelta(hours=24),
        recovery_code_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._tokens = tokens
        self._hasher = hasher
        self._notifications = notifications
        self._confirmation_code_ttl = confirmation_code_ttl
        self._recovery_code_ttl = recovery_code_ttl

    # === Sessions ===
    async def login(self, login_or_email: str, password: str, device_title: str, ip: str) -> AuthTokens | None:
        """Verify credentials and open a new device session."""
        user = await self._users.find_by_login_or_email(login_or_email, login_or_email)
        if user is None:
            return None
        if not await self._hasher.verify(password, user.password_hash):
            return None

        device_id = uuid4()
        timestamp = now()
        refresh_token = self._tokens.issue_refresh_token(user.id, device_id)
        await self._sessions.create(
            Device(
                device_id=device_id,
                user_id=user.id,
                title=device_title,
                ip=ip,
                refresh_token=refresh_token,
                last_active_date=timestamp,
                created_at=timestamp,
                expires_at=timestamp + self._tokens.refresh_token_ttl,
            )
        )
        logger.info("user_logged_in", user_id=str(user.id), device_id=str(device_id))
        return AuthTokens(access_token=self._tokens.issue_access_token(user.id), refresh_token=refresh_token)

    async def refresh_token(
        self, device_id: UUID, user_id: UUID, presented_token: str | None = None
    ) -> AuthTokens | None:
        """Rotate the refresh token of a device, invalidating the previous one.

        When presented_token is given the rotation only succeeds while it is still the stored
        token, so two requests racing with the same cookie cannot both win.
        """
        device = await self._sessions.find_by_device_id(device_id)
        if device is None or device.user_id != user_id:
            return None
        if presented_token is not None and not secrets.compare_digest(device.refresh_token, presented_token):
            return None

        timestamp = now()
        if timestamp > device.expires_at:
            await self._sessions.delete_by_device_id(device_id)
            logger.info("session_expired", user_id=str(user_id), device_id=str(device_id))
            return None

        new_refresh_token = self._tokens.issue_refresh_token(user_id, device_id)
        rotated = await self._sessions.update_refresh_token(
            device_id,
            new_refresh_token,
            timestamp + self._tokens.refresh_token_ttl,
            expected_token=device.refresh_token,
        )
        if not rotated:
            logger.warning("session_rotation_lost", user_id=str(user_id), device_id=str(device_id))
            return None

        logger.debug("session_rotated", user_id=str(user_id), device_id=str(device_id))
        return AuthTokens(access_token=self._tokens.issue_access_token(user_id), refresh_token=new_refresh_token)

    async def logout(self, device_id: UUID) -> bool:
        """End a device session; False when there was none."""
        deleted = await self._sessions.delete_by_device_id(device_id)
        if deleted:
            logger.info("user_logged_out", device_id=str(device_id))
        return deleted

    async def validate_refresh_token(self, token: str) -> SessionIdentity | None:
        """Accept only the most recently issued refresh token of a live session."""
        payload = self._tokens.verify_refresh_token(token)
        if isinstance(payload, TokenError):
            logger.debug("refresh_token_rejected", reason=payload.value)
            return None
        if payload.device_id is None:
            return None

        device = await self._sessions.find_by_device_id(payload.device_id)
        if device is None or not secrets.compare_digest(device.refresh_token, token):
            return None
        if now() > device.expires_at:
            await self._sessions.delete_by_device_id(device.device_id)
            logger.info("session_expired", user_id=str(device.user_id), device_id=str(device.device_id))
            return None

        return SessionIdentity(user_id=device.user_id, device_id=device.device_id)

    async def authenticate_access_token(self, token: str) -> User | None:
        """Resolve the user behind a bearer access token."""
        payload = self._tokens.verify_access_token(token)
        if isinstance(payload, TokenError):
            return None
        return await self._users.find_by_id(payload.user_id)

    # === Registration ===
    async def registration(self, login: str, password: str, email: str) -> User | FieldError:
        """Create an unconfirmed user and mail the confirmation code."""
        existing = await self._users.find_by_login_or_email(login, email)
        if existing is not None:
            if existing.login == login:
                return FieldError(field="login", message=LOGIN_ALREADY_EXISTS)
            return FieldError(field="email", message=EMAIL_ALREADY_EXISTS)

        code = generate_code()
        user = User(
            login=login,
            email=email,
            password_hash=await self._hasher.hash(password),
            confirmation_info=ConfirmationInfo(
                user_is_confirmed=False,
                confirmation_code=code,
                confirmation_code_expired_at=now() + self._confirmation_code_ttl,
            ),
        )
        created = await self._users.create(user)
        logger.info("user_registered", user_id=str(created.id))

        await self._notifications.send_confirmation_email(email, code)
        return created

    async def resend_confirmation_email(self, email: str) -> FieldError | None:
        user = await self._users.find_by_email(email)
        if user is None:
            return FieldError(field="email", message=EMAIL_NOT_FOUND)
        if user.confirmation_info.user_is_confirmed:
            return FieldError(field="email", message=EMAIL_ALREADY_CONFIRMED)

        code = generate_code()
        await self._users.update_confirmation_code(email, code, now() + self._confirmation_code_ttl)
        await self._notifications.send_confirmation_email(email, code)
        logger.info("confirmation_code_resent", user_id=str(user.id))
        return None

    async def confirm_registration(self, code: str) -> FieldError | None:
        user = await self._users.find_by_confirmation_code(code)
        if user is None:
            return FieldError(field="code", message=INVALID_CONFIRMATION_CODE)

        expired_at = user.confirmation_info.confirmation_code_expired_at
        if expired_at is not None and now() > expired_at:
            return FieldError(field="code", message=CONFIRMATION_CODE_EXPIRED)

        # A concurrent confirmation may have consumed the code since the lookup
        if not await self._users.confirm_user(code):
            return FieldError(field="code", message=INVALID_CONFIRMATION_CODE)

        logger.info("user_confirmed", user_id=str(user.id))
        return None

    # === Password recovery ===
    async def password_recovery(self, email: str) -> None:
        """Mail a recovery code if the address is registered; silent otherwise."""
        user = await self._users.find_by_email(email)
        if user is None:
            logger.debug("password_recovery_unknown_email")
            return

        code = generate_code()
        await self._users.update_recovery_code(email, code, now() + self._recovery_code_ttl)
        await self._notifications.send_password_recovery_email(email, code)
        logger.info("password_recovery_requested", user_id=str(user.id))

    async def set_new_password(self, recovery_code: str, new_password: str) -> FieldError | None:
        user = await self._users.find_by_recovery_code(recovery_code)
        if user is None:
            return FieldError(field="recoveryCode", message=INVALID_RECOVERY_CODE)

        expired_at = user.recovery_info.recovery_code_expired_at
        if expired_at is not None and now() > expired_at:
            return FieldError(field="recoveryCode", message=RECOVERY_CODE_EXPIRED)

        password_hash = await self._hasher.hash(new_password)
        if not await self._users.update_password_by_recovery_code(recovery_code, password_hash):
            return FieldError(field="recoveryCode", message=INVALID_RECOVERY_CODE)

        logger.info("password_changed", user_id=str(user.id))
        return None
