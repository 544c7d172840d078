from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from bloggers.config import Config

if TYPE_CHECKING:
    from bloggers.core.modules.auth.service import AuthService
    from bloggers.core.modules.device.service import DeviceService
    from bloggers.core.modules.email.service import EmailService
    from bloggers.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""


class Services:
    """Service registry wiring the stores and gateways into the auth orchestrator."""

    user: UserService
    device: DeviceService
    email: EmailService
    auth: AuthService

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        from bloggers.core.modules.auth.passwords import PasswordHasher  # noqa: PLC0415
        from bloggers.core.modules.auth.service import AuthService  # noqa: PLC0415
        from bloggers.core.modules.auth.tokens import TokenCodec  # noqa: PLC0415
        from bloggers.core.modules.device.service import DeviceService  # noqa: PLC0415
        from bloggers.core.modules.email.service import EmailService  # noqa: PLC0415
        from bloggers.core.modules.user.service import UserService  # noqa: PLC0415

        self.user = UserService(database)
        self.device = DeviceService(database)
        self.email = EmailService(
            frontend_url=config.frontend_url,
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            email_from=config.email_from,
            smtp_username=config.smtp_username,
            smtp_password=config.smtp_password,
            smtp_use_tls=config.smtp_use_tls,
        )
        tokens = TokenCodec(
            access_secret=config.jwt_access_secret,
            refresh_secret=config.jwt_refresh_secret,
            access_token_ttl=timedelta(seconds=config.access_token_ttl_seconds),
            refresh_token_ttl=timedelta(seconds=config.refresh_token_ttl_seconds),
            algorithm=config.jwt_algorithm,
        )
        self.auth = AuthService(
            users=self.user,
            sessions=self.device,
            tokens=tokens,
            hasher=PasswordHasher(rounds=config.bcrypt_rounds),
            notifications=self.email,
            confirmation_code_ttl=timedelta(seconds=config.confirmation_code_ttl_seconds),
            recovery_code_ttl=timedelta(seconds=config.recovery_code_ttl_seconds),
        )
        # Order matters: users before the devices that reference them
        self._services: list[Service] = [self.user, self.device]

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config and MongoDB; no connection is made until startup."""
        self.config = config
        # tz_aware keeps stored expiry timestamps comparable with utils.now()
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database, config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.info("core_started", database=self.database.name)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
