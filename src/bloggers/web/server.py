from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from bloggers.app import App
from bloggers.config import Config
from bloggers.errors import UserError
from bloggers.web.error_handlers import general_exception_handler, request_validation_error_handler, user_error_handler
from bloggers.web.openapi import set_custom_openapi
from bloggers.web.rate_limit import RateLimiter
from bloggers.web.routers import auth_router, security_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Bloggers API",
        lifespan=lifespan,
        openapi_tags=[],
    )

    # Store app instance, config and the shared limiter in app state
    app.state.app = app_instance
    app.state.config = config
    app.state.rate_limiter = RateLimiter(config.rate_limit_max_requests, config.rate_limit_window_seconds)

    # Add CORS middleware for frontend development
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # API v1 routes
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(security_router, prefix="/api/v1")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
