"""
Audit log entries for searches and downloads.

Entries are a tagged union on ``outcome``: each outcome carries its own
fixed set of fields. The whole entry is stored in the ``body`` column,
with ``outcome`` (and the lookup keys) duplicated as columns for filtering.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

LOG_SCHEMA_VERSION = 1


class RequestMeta(BaseModel):
    """Caller metadata attached to every entry."""
    ip_address: str = "unknown"
    user_agent: Optional[str] = None
    request_params: dict[str, str] = Field(default_factory=dict)


class LogEntryBase(RequestMeta):
    schema_version: Literal[1] = LOG_SCHEMA_VERSION
    request_timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ===================
# SEARCH ENTRIES
# ===================

class SearchResultSummary(BaseModel):
    manual_code: Optional[str] = None
    languages: list[str]
    revision: str


class SearchLogBase(LogEntryBase):
    serial_searched: str


class SearchSucceeded(SearchLogBase):
    outcome: Literal["success"] = "success"
    products_found: int
    manuals_found: int
    grouped_results_count: int
    results_summary: list[SearchResultSummary] = Field(default_factory=list)


class SearchNoProductFound(SearchLogBase):
    outcome: Literal["no_product_found"] = "no_product_found"


class SearchFailed(SearchLogBase):
    outcome: Literal["error"] = "error"
    error_message: str


SearchLogEntry = Annotated[
    Union[SearchSucceeded, SearchNoProductFound, SearchFailed],
    Field(discriminator="outcome")
]

SearchOutcome = Literal["success", "no_product_found", "error"]


# ===================
# DOWNLOAD ENTRIES
# ===================

class DownloadLogBase(LogEntryBase):
    serial_number: Optional[str] = None
    manual_code: Optional[str] = None
    language: Optional[str] = None


class DownloadSucceeded(DownloadLogBase):
    outcome: Literal["success"] = "success"
    manual_id: str
    revision_code: Optional[str] = None
    file_url: str
    file_name: str


class DownloadProductNotFound(DownloadLogBase):
    outcome: Literal["product_not_found"] = "product_not_found"


class DownloadManualNotFound(DownloadLogBase):
    outcome: Literal["manual_not_found"] = "manual_not_found"
    revision_code: Optional[str] = None


class DownloadFileNotAvailable(DownloadLogBase):
    outcome: Literal["file_not_available"] = "file_not_available"
    manual_id: str
    revision_code: Optional[str] = None


class DownloadFailed(DownloadLogBase):
    outcome: Literal["error"] = "error"
    error_message: str


DownloadLogEntry = Annotated[
    Union[
        DownloadSucceeded,
        DownloadProductNotFound,
        DownloadManualNotFound,
        DownloadFileNotAvailable,
        DownloadFailed,
    ],
    Field(discriminator="outcome")
]

DownloadOutcome = Literal[
    "success",
    "product_not_found",
    "manual_not_found",
    "file_not_available",
    "error",
]


# ===================
# STORED ROWS
# ===================

class SearchLogResponse(BaseModel):
    id: str
    serial_searched: str
    outcome: str
    body: dict = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class DownloadLogResponse(BaseModel):
    id: str
    manual_id: Optional[str] = None
    serial_number: Optional[str] = None
    manual_code: Optional[str] = None
    language: Optional[str] = None
    outcome: str
    body: dict = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class SearchLogListResponse(BaseModel):
    data: list[SearchLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class DownloadLogListResponse(BaseModel):
    data: list[DownloadLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
