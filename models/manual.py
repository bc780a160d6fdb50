"""
Manual schemas for validation and serialization.

A manual row is one language/revision variant of a document, identified
by manual code + language + revision code.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin
from utils.text_utils import normalize_revision_code


class Language(str, Enum):
    """Languages manuals are published in."""
    IT = "IT"
    EN = "EN"
    DE = "DE"
    FR = "FR"
    ES = "ES"


class ManualCreate(BaseSchema):
    """
    Create a new manual variant.

    Required: manual_code, language
    Optional: revision_code, description, name, file_url
    """

    manual_code: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Manual code shared by all variants",
        examples=["MVC_STD"]
    )
    language: Language = Field(
        ...,
        description="2-letter language code"
    )
    revision_code: Optional[str] = Field(
        None,
        description="3-digit revision code",
        examples=["001"]
    )
    description: Optional[str] = Field(
        None,
        max_length=2000,
        description="Free-text description in this language"
    )
    name: Optional[str] = Field(
        None,
        max_length=255,
        description="Display name"
    )
    file_url: Optional[str] = Field(
        None,
        description="URL of the uploaded PDF; empty until uploaded"
    )

    @field_validator("language", mode="before")
    @classmethod
    def language_uppercase(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("revision_code")
    @classmethod
    def revision_zero_padded(cls, v: Optional[str]) -> Optional[str]:
        return normalize_revision_code(v)

    @field_validator("description", "name", "file_url")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ManualUpdate(BaseSchema):
    """
    Update existing manual.

    All fields optional - only provided fields are updated.
    """

    manual_code: Optional[str] = Field(None, min_length=1, max_length=100)
    language: Optional[Language] = None
    revision_code: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)
    name: Optional[str] = Field(None, max_length=255)
    file_url: Optional[str] = None

    @field_validator("manual_code", "language")
    @classmethod
    def required_column_not_null(cls, v, info):
        # Omitted fields are never validated, so None here means an explicit null
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("language", mode="before")
    @classmethod
    def language_uppercase(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("revision_code")
    @classmethod
    def revision_zero_padded(cls, v: Optional[str]) -> Optional[str]:
        return normalize_revision_code(v)


class ManualResponse(BaseSchema, TimestampMixin):
    """Manual row as stored."""

    id: str = Field(..., description="Manual UUID")
    manual_code: str
    language: Optional[str] = None
    revision_code: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    file_url: Optional[str] = None


class ManualListResponse(BaseSchema):
    """List of manuals with pagination."""

    data: list[ManualResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
