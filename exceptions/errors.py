"""
Custom exception classes for the application.

Every failure the resolver and the admin services can signal is a
distinct AppError subclass, so route handlers can pick a specific HTTP
status, user message and log outcome for each one.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
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
        self.timestamp = datetime.now(timezone.utc).isoformat()
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
        code: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=message or f"{resource} not found",
            status_code=404,
            details={"id": identifier, **(details or {})}
        )


class ValidationError(AppError):
    """Validation failed (422 unless overridden)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
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
        fields: dict[str, Optional[str]]
    ):
        names = ", ".join(fields.keys())
        super().__init__(
            code=f"{resource.upper()}_EXISTS",
            message=f"{resource} already exists with same {names}",
            details=fields
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


class SupabaseConnectionError(ExternalServiceError):
    """Could not create or reach the Supabase client."""

    def __init__(self, message: str):
        super().__init__(
            service="supabase",
            message=f"Failed to connect to Supabase: {message}"
        )


# ===================
# REQUEST ERRORS
# ===================

class MissingParameterError(ValidationError):
    """A required request parameter is missing or blank (400)."""

    def __init__(self, *parameters: str):
        names = list(parameters)
        super().__init__(
            code="MISSING_PARAMETER",
            message=f"Required parameter missing: {', '.join(names)}",
            details={"parameters": names},
            status_code=400
        )


class UnauthorizedError(AppError):
    """Missing or invalid bearer token (401)."""

    def __init__(self):
        super().__init__(
            code="UNAUTHORIZED",
            message="Missing or invalid API token",
            status_code=401
        )


class ServiceNotConfiguredError(AppError):
    """Protected routes called while no API token is configured (503)."""

    def __init__(self, setting: str):
        super().__init__(
            code="SERVICE_NOT_CONFIGURED",
            message="Service is not configured for authenticated access",
            status_code=503,
            details={"setting": setting}
        )


# ===================
# LOOKUP ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """No product matches the serial number (and manual code)."""

    def __init__(self, identifier: str, manual_code: Optional[str] = None):
        if manual_code is None:
            super().__init__(
                resource="Product",
                identifier=identifier,
                code="PRODUCT_NOT_FOUND"
            )
            return
        super().__init__(
            resource="Product",
            identifier=identifier,
            code="PRODUCT_NOT_FOUND",
            message="Product not found with specified serial number and manual code",
            details={"serial_number": identifier, "manual_code": manual_code}
        )


class ManualNotFoundError(NotFoundError):
    """A product exists but no manual matches its code, language and revision."""

    def __init__(
        self,
        identifier: str,
        language: Optional[str] = None,
        revision_code: Optional[str] = None
    ):
        if language is None:
            super().__init__(
                resource="Manual",
                identifier=identifier,
                code="MANUAL_NOT_FOUND"
            )
            return
        super().__init__(
            resource="Manual",
            identifier=identifier,
            code="MANUAL_NOT_FOUND",
            message="Manual not found for the specified product, language and revision",
            details={
                "manual_code": identifier,
                "language": language,
                "revision_code": revision_code
            }
        )


class FileNotAvailableError(NotFoundError):
    """The manual exists but no file has been uploaded for it."""

    def __init__(
        self,
        manual_id: str,
        manual_code: str,
        language: str,
        revision_code: Optional[str] = None
    ):
        super().__init__(
            resource="File",
            identifier=manual_id,
            code="FILE_NOT_AVAILABLE",
            message="File not available for this manual",
            details={
                "manual_code": manual_code,
                "language": language,
                "revision_code": revision_code
            }
        )


# ===================
# ADMIN ERRORS
# ===================

class ProductExistsError(DuplicateError):
    """Same serial number, manual code and revision already stored."""

    def __init__(
        self,
        serial_number: str,
        manual_code: Optional[str],
        revision_code: Optional[str]
    ):
        super().__init__(
            resource="Product",
            fields={
                "serial_number": serial_number,
                "manual_code": manual_code,
                "revision_code": revision_code
            }
        )


class ManualExistsError(DuplicateError):
    """Same manual code, language and revision already stored."""

    def __init__(
        self,
        manual_code: str,
        language: str,
        revision_code: Optional[str]
    ):
        super().__init__(
            resource="Manual",
            fields={
                "manual_code": manual_code,
                "language": language,
                "revision_code": revision_code
            }
        )
