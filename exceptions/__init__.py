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
    SupabaseConnectionError,

    # Request
    MissingParameterError,
    UnauthorizedError,
    ServiceNotConfiguredError,

    # Lookup
    ProductNotFoundError,
    ManualNotFoundError,
    FileNotAvailableError,

    # Admin
    ProductExistsError,
    ManualExistsError,
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
    "SupabaseConnectionError",

    # Request
    "MissingParameterError",
    "UnauthorizedError",
    "ServiceNotConfiguredError",

    # Lookup
    "ProductNotFoundError",
    "ManualNotFoundError",
    "FileNotAvailableError",

    # Admin
    "ProductExistsError",
    "ManualExistsError",
]
