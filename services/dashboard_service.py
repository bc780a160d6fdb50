"""
Dashboard service.

Summary counts for the admin home page.
"""

from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from models.dashboard import DashboardSummary
from services.product_service import ProductService
from services.manual_service import ManualService

logger = structlog.get_logger(__name__)


class DashboardService:

    def __init__(self, db: Optional[Client] = None):
        self.db = db if db is not None else get_supabase_client()
        self.products = ProductService(self.db)
        self.manuals = ManualService(self.db)

    def get_summary(self, recent_limit: int = 5) -> DashboardSummary:
        """Totals plus the latest products and manuals."""
        summary = DashboardSummary(
            total_products=self.products.count(),
            total_manuals=self.manuals.count(),
            manuals_without_file=self.manuals.count_without_file(),
            recent_products=self.products.recent(recent_limit),
            recent_manuals=self.manuals.recent(recent_limit),
        )

        logger.info(
            "dashboard_summary",
            products=summary.total_products,
            manuals=summary.total_manuals,
            without_file=summary.manuals_without_file
        )

        return summary


# Singleton instance for convenience
_dashboard_service: Optional[DashboardService] = None

def get_dashboard_service() -> DashboardService:
    """Get or create DashboardService instance."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
