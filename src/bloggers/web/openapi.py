from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from bloggers.web.deps import REFRESH_TOKEN_COOKIE


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Bloggers API",
            version="0.1.0",
            summary="Authentication and device sessions of the bloggers platform",
            routes=app.routes,
        )

        openapi_schema["components"]["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Short-lived access token",
            },
            "RefreshTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": REFRESH_TOKEN_COOKIE,
                "description": "Device-bound refresh token, rotated on every use",
            },
        }

        # Which credential each protected endpoint expects; everything else is public
        bearer_endpoints = {("GET", "/api/v1/auth/me")}
        cookie_prefixes = ("/api/v1/security/", "/api/v1/auth/refresh-token", "/api/v1/auth/logout")

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in bearer_endpoints:
                    operation["security"] = [{"BearerAuth": []}]
                elif path.startswith(cookie_prefixes):
                    operation["security"] = [{"RefreshTokenCookie": []}]
                else:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Unauthorized", "type": "authentication_error"},
                {"message": "Too many requests", "type": "rate_limited"},
            ]
        }
    }


class FieldErrorMessage(BaseModel):
    message: str = Field(..., description="Human-readable error message")
    field: str = Field(..., description="Name of the offending input field")


class FieldErrorsResponse(BaseModel):
    """Validation error response naming the offending fields."""

    errorsMessages: list[FieldErrorMessage]  # noqa: N815

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"errorsMessages": [{"message": "User with this login already exists", "field": "login"}]},
            ]
        }
    }
