"""
Base schemas and mixins for all models.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from datetime import datetime
from typing import Any, Optional


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """Add timestamps to response models."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ===================
# BULK IMPORT
# ===================

class BulkItemResult(BaseModel):
    """Outcome of one item in a bulk import."""
    index: int
    status: str = Field(..., description="created, skipped or error")
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    assigned_revision_code: Optional[str] = None


class BulkSummary(BaseModel):
    total: int
    created: int
    errors: int
    skipped: int


class BulkCreateResponse(BaseModel):
    """Bulk import result: created rows, failed rows and totals."""
    success: list[BulkItemResult]
    errors: list[BulkItemResult]
    summary: BulkSummary

    @classmethod
    def from_results(cls, results: list[BulkItemResult]) -> "BulkCreateResponse":
        created = [r for r in results if r.status == "created"]
        failed = [r for r in results if r.status != "created"]
        return cls(
            success=created,
            errors=failed,
            summary=BulkSummary(
                total=len(results),
                created=len(created),
                errors=len(failed),
                skipped=sum(1 for r in failed if r.status == "skipped")
            )
        )


def describe_validation_error(error: PydanticValidationError) -> str:
    """One-line summary of a pydantic ValidationError, e.g. 'language: Input should be ...'."""
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)
