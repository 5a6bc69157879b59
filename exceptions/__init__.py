"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Import run
    ConfigurationError,
    ImportJobNotFoundError,
    RowValidationError,
    VariantValidationError,
    StorageError,
    TransportError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Import run
    "ConfigurationError",
    "ImportJobNotFoundError",
    "RowValidationError",
    "VariantValidationError",
    "StorageError",
    "TransportError",
]
