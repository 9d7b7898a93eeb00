"""Application-level error taxonomy."""

from __future__ import annotations

from typing import Any


class ApplicationError(Exception):
    """Base class for domain-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "application_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class NotFoundError(ApplicationError):
    """Error representing missing rows or identities."""

    def __init__(
        self,
        message: str = "Resource not found.",
        *,
        code: str = "not_found",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class ValidationError(ApplicationError):
    """A required field is missing or malformed; raised before any remote call."""

    def __init__(
        self,
        message: str = "Validation failed.",
        *,
        code: str = "validation_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class TransientFailureError(ApplicationError):
    """Network or server failure that may succeed when retried."""

    def __init__(
        self,
        message: str = "Remote store is temporarily unavailable.",
        *,
        code: str = "transient_failure",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class DatabaseIntegrityError(ApplicationError):
    """Error representing integrity violations reported by the remote store."""

    def __init__(
        self,
        message: str = "Database integrity violation.",
        *,
        code: str = "db_integrity_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class ConfirmationRequiredError(ApplicationError):
    """A gated transition was attempted without a matching confirmation."""

    def __init__(
        self,
        message: str = "Confirmation is required for this transition.",
        *,
        code: str = "confirmation_required",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class PermissionDeniedError(ApplicationError):
    """The acting user lacks the project role needed for an operation."""

    def __init__(
        self,
        message: str = "Permission denied.",
        *,
        code: str = "permission_denied",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


__all__ = [
    "ApplicationError",
    "ConfirmationRequiredError",
    "DatabaseIntegrityError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransientFailureError",
    "ValidationError",
]
