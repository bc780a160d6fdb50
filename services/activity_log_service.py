"""
Search and download audit log.

Route handlers build an entry for every lookup they answer and hand it
here. Writing the log must never change the response the customer gets,
so insert failures are logged and dropped.
"""

from typing import Optional, Union
import structlog
from supabase import Client

from config import get_supabase_client
from models.activity_log import (
    RequestMeta,
    SearchLogEntry,
    SearchSucceeded,
    SearchNoProductFound,
    SearchFailed,
    SearchResultSummary,
    DownloadLogEntry,
    DownloadSucceeded,
    DownloadProductNotFound,
    DownloadManualNotFound,
    DownloadFileNotAvailable,
    DownloadFailed,
    SearchLogResponse,
    DownloadLogResponse,
)
from services.manual_resolver import SearchResult, DownloadResult
from exceptions import (
    DatabaseError,
    ProductNotFoundError,
    ManualNotFoundError,
    FileNotAvailableError,
)

logger = structlog.get_logger(__name__)


# ===================
# ENTRY BUILDERS
# ===================

def search_entry(result: SearchResult, meta: RequestMeta) -> SearchLogEntry:
    """Log entry for a search that completed (with or without results)."""
    if not result.product_found:
        return SearchNoProductFound(serial_searched=result.serial_number, **meta.model_dump())

    return SearchSucceeded(
        serial_searched=result.serial_number,
        products_found=len(result.products),
        manuals_found=result.manuals_found,
        grouped_results_count=len(result.groups),
        results_summary=[
            SearchResultSummary(
                manual_code=group.manual_code,
                languages=group.languages,
                revision=group.revision
            )
            for group in result.groups
        ],
        **meta.model_dump()
    )


def search_error_entry(serial_number: str, error: Exception, meta: RequestMeta) -> SearchLogEntry:
    return SearchFailed(
        serial_searched=serial_number or "unknown",
        error_message=str(error),
        **meta.model_dump()
    )


def download_entry(
    serial_number: str,
    manual_code: str,
    language: str,
    outcome: Union[DownloadResult, Exception],
    meta: RequestMeta
) -> DownloadLogEntry:
    """
    Log entry for a download attempt.

    Args:
        outcome: The resolver's DownloadResult, or the exception it raised

    Returns:
        The entry variant matching the outcome
    """
    keys = {
        "serial_number": serial_number,
        "manual_code": manual_code,
        "language": language,
        **meta.model_dump()
    }

    if isinstance(outcome, DownloadResult):
        return DownloadSucceeded(
            manual_id=outcome.manual.id,
            revision_code=outcome.product.revision_code,
            file_url=outcome.file_url,
            file_name=outcome.file_name,
            **keys
        )
    if isinstance(outcome, ProductNotFoundError):
        return DownloadProductNotFound(**keys)
    if isinstance(outcome, ManualNotFoundError):
        return DownloadManualNotFound(
            revision_code=outcome.details.get("revision_code"),
            **keys
        )
    if isinstance(outcome, FileNotAvailableError):
        return DownloadFileNotAvailable(
            manual_id=outcome.details["id"],
            revision_code=outcome.details.get("revision_code"),
            **keys
        )
    return DownloadFailed(error_message=str(outcome), **keys)


# ===================
# SERVICE
# ===================

class ActivityLogService:
    """
    Reads and writes the search_logs and download_logs tables.
    """

    def __init__(self, db: Optional[Client] = None):
        self.db = db if db is not None else get_supabase_client()
        self.searches_table = "search_logs"
        self.downloads_table = "download_logs"

    # ===================
    # WRITE
    # ===================

    def record_search(self, entry: SearchLogEntry) -> bool:
        """
        Store a search entry.

        Returns:
            True if stored, False if the insert failed
        """
        row = {
            "serial_searched": entry.serial_searched,
            "outcome": entry.outcome,
            "body": entry.model_dump(mode="json"),
        }
        try:
            self.db.table(self.searches_table).insert(row).execute()
            logger.debug("search_logged", outcome=entry.outcome)
            return True
        except Exception as e:
            logger.warning(
                "search_log_failed",
                serial_searched=entry.serial_searched,
                outcome=entry.outcome,
                error=str(e)
            )
            return False

    def record_download(self, entry: DownloadLogEntry) -> bool:
        """
        Store a download entry.

        Returns:
            True if stored, False if the insert failed
        """
        row = {
            "manual_id": getattr(entry, "manual_id", None),
            "serial_number": entry.serial_number,
            "manual_code": entry.manual_code,
            "language": entry.language,
            "outcome": entry.outcome,
            "body": entry.model_dump(mode="json"),
        }
        try:
            self.db.table(self.downloads_table).insert(row).execute()
            logger.debug("download_logged", outcome=entry.outcome)
            return True
        except Exception as e:
            logger.warning(
                "download_log_failed",
                serial_number=entry.serial_number,
                outcome=entry.outcome,
                error=str(e)
            )
            return False

    # ===================
    # READ
    # ===================

    def list_searches(
        self,
        page: int = 1,
        page_size: int = 20,
        serial_number: Optional[str] = None,
        outcome: Optional[str] = None
    ) -> tuple[list[SearchLogResponse], int]:
        """
        Search log, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            serial_number: Substring of the searched serial number
            outcome: Exact outcome (success, no_product_found, error)

        Returns:
            Tuple of (entries, total count)
        """
        logger.info("getting_search_logs", page=page, outcome=outcome)

        try:
            query = self.db.table(self.searches_table).select("*", count="exact")

            if serial_number:
                query = query.ilike("serial_searched", f"%{serial_number}%")
            if outcome:
                query = query.eq("outcome", outcome)

            offset = (page - 1) * page_size
            query = query.order("created_at", desc=True).range(offset, offset + page_size - 1)

            result = query.execute()
            return [SearchLogResponse(**row) for row in result.data], result.count or 0

        except Exception as e:
            logger.error("get_search_logs_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def list_downloads(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        outcome: Optional[str] = None,
        language: Optional[str] = None
    ) -> tuple[list[DownloadLogResponse], int]:
        """
        Download log, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            search: Substring of the serial number or manual code
            outcome: Exact outcome (success, product_not_found, ...)
            language: Exact language code

        Returns:
            Tuple of (entries, total count)
        """
        logger.info("getting_download_logs", page=page, outcome=outcome, language=language)

        try:
            query = self.db.table(self.downloads_table).select("*", count="exact")

            if search:
                query = query.or_(
                    f"serial_number.ilike.%{search}%,manual_code.ilike.%{search}%"
                )
            if outcome:
                query = query.eq("outcome", outcome)
            if language:
                query = query.eq("language", language.upper())

            offset = (page - 1) * page_size
            query = query.order("created_at", desc=True).range(offset, offset + page_size - 1)

            result = query.execute()
            return [DownloadLogResponse(**row) for row in result.data], result.count or 0

        except Exception as e:
            logger.error("get_download_logs_failed", error=str(e))
            raise DatabaseError("select", str(e))


# Singleton instance for convenience
_activity_log_service: Optional[ActivityLogService] = None

def get_activity_log_service() -> ActivityLogService:
    """Get or create ActivityLogService instance."""
    global _activity_log_service
    if _activity_log_service is None:
        _activity_log_service = ActivityLogService()
    return _activity_log_service
