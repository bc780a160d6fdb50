"""
Audit log routes.

Read-only views over the search and download logs.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import structlog

from models.activity_log import (
    SearchLogListResponse,
    DownloadLogListResponse,
    SearchOutcome,
    DownloadOutcome,
)
from services.activity_log_service import get_activity_log_service
from routes.errors import handle_error
from utils.auth import require_api_token

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_token)])


@router.get("/searches", response_model=SearchLogListResponse)
async def list_search_logs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    serial_number: Optional[str] = Query(None, description="Filter by searched serial substring"),
    outcome: Optional[SearchOutcome] = Query(None, description="Filter by outcome")
):
    """Search log entries, newest first."""
    try:
        entries, total = get_activity_log_service().list_searches(
            page=page,
            page_size=page_size,
            serial_number=serial_number,
            outcome=outcome
        )

        return SearchLogListResponse(
            data=entries,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size
        )

    except Exception as e:
        return handle_error(e)


@router.get("/downloads", response_model=DownloadLogListResponse)
async def list_download_logs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Serial number or manual code substring"),
    outcome: Optional[DownloadOutcome] = Query(None, description="Filter by outcome"),
    language: Optional[str] = Query(None, description="Filter by language")
):
    """Download log entries, newest first."""
    try:
        entries, total = get_activity_log_service().list_downloads(
            page=page,
            page_size=page_size,
            search=search,
            outcome=outcome,
            language=language
        )

        return DownloadLogListResponse(
            data=entries,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size
        )

    except Exception as e:
        return handle_error(e)
