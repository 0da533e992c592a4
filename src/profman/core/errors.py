"""Application error hierarchy.

Every error carries the (status_code, code, message) triple used by the
global exception handlers to build the response envelope.
"""

from __future__ import annotations

from typing import Any


class ProfmanError(Exception):
    """Base error for all ProfMan failures."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the `error` member of the envelope."""
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(ProfmanError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class InvalidIdError(ProfmanError):
    status_code = 400
    code = "INVALID_ID"
    default_message = "Invalid ID format"


class UnauthorizedError(ProfmanError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidTokenError(UnauthorizedError):
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class TokenExpiredError(UnauthorizedError):
    code = "TOKEN_EXPIRED"
    default_message = "Token expired"


class ForbiddenError(ProfmanError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class NotFoundError(ProfmanError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ProfmanError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class DuplicateKeyError(ConflictError):
    code = "DUPLICATE_KEY"
    default_message = "Duplicate key error"


class IntegrationError(ProfmanError):
    """A call to Google Drive / Sheets failed."""

    status_code = 502
    code = "INTEGRATION_ERROR"
    default_message = "External service call failed"
