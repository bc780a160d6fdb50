"""
Public lookup routes: search by serial number and download a manual.

No authentication. Every answered lookup is written to the audit log;
requests rejected for missing parameters are not.
"""

from fastapi import APIRouter, Query, Request
from typing import Optional
import structlog

from models.activity_log import RequestMeta
from models.lookup import (
    SearchResponse,
    DownloadResponse,
    DownloadManualInfo,
    DownloadProductInfo,
)
from services.manual_resolver import get_manual_resolver
from services.activity_log_service import (
    get_activity_log_service,
    search_entry,
    search_error_entry,
    download_entry,
)
from exceptions import MissingParameterError
from routes.errors import handle_error
from utils.request_meta import request_meta

logger = structlog.get_logger(__name__)

router = APIRouter()

NO_RESULTS_MESSAGE = "No manuals found for this serial number"


def _log_search(entry) -> None:
    try:
        get_activity_log_service().record_search(entry)
    except Exception as e:
        logger.warning("search_log_unavailable", error=str(e))


def _log_download(entry) -> None:
    try:
        get_activity_log_service().record_download(entry)
    except Exception as e:
        logger.warning("download_log_unavailable", error=str(e))


# ===================
# ROUTES
# ===================

@router.get("/search", response_model=SearchResponse)
async def search_manuals(
    request: Request,
    serial_number: Optional[str] = Query(None, description="Serial number printed on the product")
):
    """
    List the manuals available for a serial number.

    Returns an empty list (not an error) when nothing matches.

    Raises:
        400: serial_number missing
    """
    meta: RequestMeta = request_meta(request)

    try:
        result = get_manual_resolver().resolve_manuals_for_serial(serial_number)
    except MissingParameterError as e:
        return handle_error(e)
    except Exception as e:
        _log_search(search_error_entry(serial_number or "", e, meta))
        return handle_error(e)

    _log_search(search_entry(result, meta))

    return SearchResponse(
        data=result.groups,
        search_term=result.serial_number,
        message=None if result.groups else NO_RESULTS_MESSAGE
    )


@router.get("/download", response_model=DownloadResponse)
async def download_manual(
    request: Request,
    serial_number: Optional[str] = Query(None, description="Serial number printed on the product"),
    manual_code: Optional[str] = Query(None, description="Manual code"),
    language: Optional[str] = Query(None, description="2-letter language code")
):
    """
    Resolve the file URL of one manual variant.

    The browser downloads the file directly from object storage.

    Raises:
        400: A parameter is missing
        404: PRODUCT_NOT_FOUND, MANUAL_NOT_FOUND or FILE_NOT_AVAILABLE
    """
    meta: RequestMeta = request_meta(request)

    try:
        result = get_manual_resolver().resolve_download(serial_number, manual_code, language)
    except MissingParameterError as e:
        return handle_error(e)
    except Exception as e:
        _log_download(download_entry(serial_number, manual_code, language, e, meta))
        return handle_error(e)

    _log_download(download_entry(serial_number, manual_code, language, result, meta))

    return DownloadResponse(
        download_url=result.file_url,
        file_name=result.file_name,
        manual=DownloadManualInfo(
            manual_code=result.manual.manual_code,
            language=result.manual.language,
            revision_code=result.manual.revision_code
        ),
        product=DownloadProductInfo(
            serial_number=result.product.serial_number,
            manual_code=result.product.manual_code,
            revision_code=result.product.revision_code
        )
    )
