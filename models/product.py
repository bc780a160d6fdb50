"""
Product schemas for validation and serialization.

A product is one physical unit identified by its serial number, pointing
at the manual code (and optionally the revision) that documents it.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema, TimestampMixin
from utils.text_utils import normalize_revision_code


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: serial_number
    Optional: manual_code, revision_code
    """

    serial_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Serial number printed on the product",
        examples=["2504485"]
    )
    manual_code: Optional[str] = Field(
        None,
        max_length=100,
        description="Code of the manual documenting this product",
        examples=["MVC_STD"]
    )
    revision_code: Optional[str] = Field(
        None,
        description="3-digit revision code (e.g. 001)",
        examples=["001"]
    )

    @field_validator("revision_code")
    @classmethod
    def revision_zero_padded(cls, v: Optional[str]) -> Optional[str]:
        """Revision codes are stored as 3-digit strings."""
        return normalize_revision_code(v)

    @field_validator("manual_code")
    @classmethod
    def blank_code_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    """

    serial_number: Optional[str] = Field(
        None,
        min_length=1,
        max_length=100,
        description="Serial number"
    )
    manual_code: Optional[str] = Field(
        None,
        max_length=100,
        description="Manual code"
    )
    revision_code: Optional[str] = Field(
        None,
        description="3-digit revision code"
    )

    @field_validator("serial_number")
    @classmethod
    def serial_not_null(cls, v: Optional[str]) -> str:
        # Omitted fields are never validated, so None here means an explicit null
        if v is None:
            raise ValueError("serial_number cannot be null")
        return v

    @field_validator("revision_code")
    @classmethod
    def revision_zero_padded(cls, v: Optional[str]) -> Optional[str]:
        return normalize_revision_code(v)


class ProductResponse(BaseSchema, TimestampMixin):
    """
    Product response with all fields.

    Used for GET responses.
    """

    id: str = Field(..., description="Product UUID")
    serial_number: str = Field(..., description="Serial number")
    manual_code: Optional[str] = Field(None, description="Manual code")
    revision_code: Optional[str] = Field(None, description="Revision code")


class ProductListResponse(BaseSchema):
    """List of products with pagination."""

    data: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
