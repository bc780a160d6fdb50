"""
Business logic services.

Each service handles one domain area.
"""

from services.manual_resolver import (
    ManualResolver,
    get_manual_resolver,
    SearchResult,
    DownloadResult,
)
from services.product_service import ProductService, get_product_service
from services.manual_service import ManualService, get_manual_service
from services.activity_log_service import ActivityLogService, get_activity_log_service
from services.dashboard_service import DashboardService, get_dashboard_service

__all__ = [
    "ManualResolver",
    "get_manual_resolver",
    "SearchResult",
    "DownloadResult",
    "ProductService",
    "get_product_service",
    "ManualService",
    "get_manual_service",
    "ActivityLogService",
    "get_activity_log_service",
    "DashboardService",
    "get_dashboard_service",
]
