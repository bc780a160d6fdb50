"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    BulkItemResult,
    BulkSummary,
    BulkCreateResponse,
)
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
)
from models.manual import (
    Language,
    ManualCreate,
    ManualUpdate,
    ManualResponse,
    ManualListResponse,
)
from models.lookup import (
    GroupedManual,
    SearchResponse,
    DownloadResponse,
    DownloadManualInfo,
    DownloadProductInfo,
)
from models.activity_log import (
    RequestMeta,
    SearchLogEntry,
    DownloadLogEntry,
    SearchLogResponse,
    DownloadLogResponse,
    SearchLogListResponse,
    DownloadLogListResponse,
)
from models.dashboard import DashboardSummary

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "BulkItemResult",
    "BulkSummary",
    "BulkCreateResponse",

    # Product
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",

    # Manual
    "Language",
    "ManualCreate",
    "ManualUpdate",
    "ManualResponse",
    "ManualListResponse",

    # Lookup
    "GroupedManual",
    "SearchResponse",
    "DownloadResponse",
    "DownloadManualInfo",
    "DownloadProductInfo",

    # Activity log
    "RequestMeta",
    "SearchLogEntry",
    "DownloadLogEntry",
    "SearchLogResponse",
    "DownloadLogResponse",
    "SearchLogListResponse",
    "DownloadLogListResponse",

    # Dashboard
    "DashboardSummary",
]
