from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from uuid import UUID

from bloggers.config import Config
from bloggers.core.core import Core
from bloggers.core.modules.auth.models import AuthTokens, FieldError, SessionIdentity
from bloggers.core.modules.auth.ports import SessionStore
from bloggers.core.modules.auth.service import AuthService
from bloggers.core.modules.device.models import DeviceView
from bloggers.core.modules.user.models import MeView, UserView
from bloggers.errors import AccessDeniedError, AuthenticationError, FieldValidationError, NotFoundError


class App:
    """Facade for all application operations, turning auth outcomes into user errors."""

    def __init__(
        self,
        auth: AuthService,
        sessions: SessionStore,
        lifespan: Callable[[], AbstractAsyncContextManager[None]] | None = None,
    ) -> None:
        self._auth = auth
        self._sessions = sessions
        self._lifespan = lifespan

    @classmethod
    def from_config(cls, config: Config) -> "App":
        """Build the application on top of MongoDB-backed services."""
        core = Core(config)
        return cls(core.services.auth, core.services.device, core.lifespan)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core when there is one."""
        if self._lifespan is None:
            yield
            return
        async with self._lifespan():
            yield

    # === Authentication ===
    async def login(self, login_or_email: str, password: str, device_title: str, ip: str) -> AuthTokens:
        tokens = await self._auth.login(login_or_email, password, device_title, ip)
        if tokens is None:
            raise AuthenticationError
        return tokens

    async def authenticate_refresh_token(self, refresh_token: str) -> SessionIdentity:
        """Resolve a refresh cookie to its live session."""
        identity = await self._auth.validate_refresh_token(refresh_token)
        if identity is None:
            raise AuthenticationError
        return identity

    async def refresh_tokens(self, refresh_token: str) -> AuthTokens:
        identity = await self.authenticate_refresh_token(refresh_token)
        tokens = await self._auth.refresh_token(identity.device_id, identity.user_id, presented_token=refresh_token)
        if tokens is None:
            raise AuthenticationError
        return tokens

    async def logout(self, refresh_token: str) -> None:
        identity = await self.authenticate_refresh_token(refresh_token)
        if not await self._auth.logout(identity.device_id):
            raise AuthenticationError

    async def get_current_user(self, access_token: str) -> MeView:
        user = await self._auth.authenticate_access_token(access_token)
        if user is None:
            raise AuthenticationError
        return MeView.from_domain(user)

    # === Registration and recovery ===
    async def registration(self, login: str, password: str, email: str) -> UserView:
        result = await self._auth.registration(login, password, email)
        if isinstance(result, FieldError):
            raise FieldValidationError(result.field, result.message)
        return UserView.from_domain(result)

    async def confirm_registration(self, code: str) -> None:
        _raise_field_error(await self._auth.confirm_registration(code))

    async def resend_confirmation_email(self, email: str) -> None:
        _raise_field_error(await self._auth.resend_confirmation_email(email))

    async def password_recovery(self, email: str) -> None:
        await self._auth.password_recovery(email)

    async def set_new_password(self, recovery_code: str, new_password: str) -> None:
        _raise_field_error(await self._auth.set_new_password(recovery_code, new_password))

    # === Devices ===
    async def get_devices(self, identity: SessionIdentity) -> list[DeviceView]:
        """List active sessions of the current user."""
        devices = await self._sessions.find_by_user_id(identity.user_id)
        return [DeviceView.from_domain(device) for device in devices]

    async def delete_other_devices(self, identity: SessionIdentity) -> int:
        """End every session of the current user except the calling one."""
        return await self._sessions.delete_other_devices_by_user_id(identity.user_id, identity.device_id)

    async def delete_device(self, identity: SessionIdentity, device_id: str) -> None:
        """End one session; only its owner may do so. Ids that are not UUIDs are unknown devices."""
        try:
            parsed_id = UUID(device_id)
        except ValueError:
            raise NotFoundError(f"Device '{device_id}' not found") from None
        device = await self._sessions.find_by_device_id(parsed_id)
        if device is None:
            raise NotFoundError(f"Device '{device_id}' not found")
        if device.user_id != identity.user_id:
            raise AccessDeniedError("Access denied: device belongs to another user")
        await self._sessions.delete_by_device_id(parsed_id)


def _raise_field_error(result: FieldError | None) -> None:
    if result is not None:
        raise FieldValidationError(result.field, result.message)
