"""
Dashboard API routes.

Summary counts for the admin home page.
"""

from fastapi import APIRouter, Depends, Query
import structlog

from models.dashboard import DashboardSummary
from services.dashboard_service import get_dashboard_service
from routes.errors import handle_error
from utils.auth import require_api_token

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_token)])


@router.get("", response_model=DashboardSummary)
async def get_dashboard(
    recent_limit: int = Query(5, ge=1, le=50, description="How many recent rows to include")
):
    """
    Totals of products and manuals, manuals still missing a file,
    and the latest additions of each.
    """
    try:
        service = get_dashboard_service()
        return service.get_summary(recent_limit=recent_limit)

    except Exception as e:
        return handle_error(e)
