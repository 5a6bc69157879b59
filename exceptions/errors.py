"""
Custom exception classes for the application.

Run-fatal errors (ConfigurationError) stop an import before any row is
touched. Row and variant errors are raised inside the reconciliation engine
and converted into skips by the caller that owns the row or the variant.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "CONFIGURATION_ERROR")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# IMPORT RUN ERRORS
# ===================

class ConfigurationError(ValidationError):
    """Run cannot start: credentials, scope filters or family mapping unusable."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="IMPORT_CONFIGURATION_ERROR",
            message=message,
            details=details
        )


class ImportJobNotFoundError(NotFoundError):
    """Import job not found."""

    def __init__(self, job_id: str):
        super().__init__(
            resource="Import job",
            identifier=job_id,
            code="IMPORT_JOB_NOT_FOUND"
        )


class RowValidationError(ValidationError):
    """A source product row cannot be imported; the row is skipped."""

    def __init__(
        self,
        reason: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.reason = reason
        super().__init__(
            code=f"ROW_{reason.upper()}",
            message=message,
            details=details
        )


class VariantValidationError(ValidationError):
    """A single variant cannot be imported; its siblings still are."""

    def __init__(
        self,
        reason: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.reason = reason
        super().__init__(
            code=f"VARIANT_{reason.upper()}",
            message=message,
            details=details
        )


class StorageError(AppError):
    """Image scratch directory or media backend unusable."""

    def __init__(self, path: str, message: str):
        super().__init__(
            code="STORAGE_ERROR",
            message=message,
            status_code=500,
            details={"path": path}
        )


class TransportError(ExternalServiceError):
    """Shopify request failed after the bounded retries."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="shopify",
            message=message,
            details=details
        )
