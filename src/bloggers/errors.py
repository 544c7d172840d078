from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails.

    The message is deliberately generic: callers must not learn whether a login,
    password or token was the part that failed.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class FieldValidationError(ValidationError):
    """Raised for validation failures tied to a single input field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class RateLimitError(UserError):
    """Raised when a client exceeds the request budget of an endpoint."""

    def __init__(self, message: str = "Too many requests") -> None:
        super().__init__(message)
