"""
Schemas for the public serial-number lookup and download endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional


class GroupedManual(BaseModel):
    """
    All language variants of one manual code found for a serial number.

    Built per request by the resolver; never stored.
    """

    serial_number: str = Field(..., description="Serial number searched")
    manual_code: Optional[str] = Field(None, description="Manual code")
    name: str = Field(..., description="Display name")
    description: str = Field(..., description="Description chosen by language priority")
    descriptions: dict[str, str] = Field(
        default_factory=dict,
        description="Description per language, only languages that have one"
    )
    revision: str = Field(..., description="Revision code of the variants")
    languages: list[str] = Field(
        default_factory=list,
        description="Available languages in first-seen order"
    )
    file_urls: dict[str, str] = Field(
        default_factory=dict,
        description="File URL per language; languages without a file are absent"
    )


class SearchResponse(BaseModel):
    """Response of GET /api/search."""
    data: list[GroupedManual]
    search_term: str
    message: Optional[str] = None


class DownloadManualInfo(BaseModel):
    manual_code: str
    language: str
    revision_code: Optional[str] = None


class DownloadProductInfo(BaseModel):
    serial_number: str
    manual_code: Optional[str] = None
    revision_code: Optional[str] = None


class DownloadResponse(BaseModel):
    """Response of GET /api/download."""
    download_url: str
    file_name: str
    manual: DownloadManualInfo
    product: DownloadProductInfo
