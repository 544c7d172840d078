import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from bloggers.errors import (
    AccessDeniedError,
    AuthenticationError,
    FieldValidationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


def create_field_errors_response(errors: list[tuple[str, str]]) -> JSONResponse:
    """Create 400 response listing the offending fields as (field, message) pairs."""
    return JSONResponse(
        status_code=400,
        content={"errorsMessages": [{"message": message, "field": field} for field, message in errors]},
    )


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, FieldValidationError):
        return create_field_errors_response([(exc.field, exc.message)])

    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, RateLimitError):
        status_code = 429
        error_type = "rate_limited"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Report malformed request bodies in the same shape as field errors, first error per field."""
    errors: dict[str, str] = {}
    if isinstance(exc, RequestValidationError):
        for error in exc.errors():
            field = next((str(part) for part in reversed(error["loc"]) if isinstance(part, str)), "body")
            errors.setdefault(field, error["msg"])
    return create_field_errors_response(list(errors.items()))


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
