"""
core/errors.py -- Domain error taxonomy for MilAsset.

Every failure a handler can produce is one of these classes. Each carries the
HTTP status and machine-readable code it maps to, so api/main.py needs a
single exception handler to turn any of them into the standard error
envelope. Stores and auth code raise these; route code lets them propagate.

Layer rule: core/ is the kernel. No imports from api/, auth/, or inventory/.
"""

from typing import Optional


class AppError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class Unauthenticated(AppError):
    """No credential proof was supplied."""

    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required."


class InvalidToken(AppError):
    """A bearer token was supplied but could not be verified."""

    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or malformed token."


class ExpiredToken(InvalidToken):
    """Signature is valid but the token is past its expiry."""

    code = "token_expired"
    default_message = "Token has expired. Log in again."


class InvalidCredential(AppError):
    status_code = 401
    code = "bad_credentials"
    default_message = "Invalid email or password."


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient role for this operation."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Request validation failed."


class InternalError(AppError):
    """Unexpected store or server failure."""
