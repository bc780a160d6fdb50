"""
Supabase clients for the lookup store.

Two clients exist: the anon-key client shared by the public lookup and the
audit log, and an optional service-role client for admin writes. Services
take an explicit client, so these functions are only the default wiring.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings
from exceptions.errors import SupabaseConnectionError

logger = structlog.get_logger(__name__)

LOOKUP_TABLES = ("products", "manuals")


def _masked_url() -> str:
    return settings.supabase_url[:30] + "..."


@lru_cache()
def get_supabase_client() -> Client:
    """
    Anon-key client, built on first use and reused after that.

    A one-row read of products runs before the client is handed out.
    get_supabase_client.cache_clear() drops it.

    Raises:
        SupabaseConnectionError: If the client can't reach the store
    """
    logger.info("connecting_to_supabase", url=_masked_url())

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table("products").select("id").limit(1).execute()
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise SupabaseConnectionError(str(e)) from e

    logger.info("supabase_connected", url=_masked_url())
    return client


def get_admin_client() -> Optional[Client]:
    """
    Service-role client for product and manual writes.

    None when SUPABASE_SERVICE_KEY is unset or the client can't be built;
    callers then write through get_supabase_client().
    """
    if not settings.supabase_service_key:
        logger.warning("admin_client_not_configured")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        logger.error("admin_client_failed", error=str(e))
        return None


class DatabaseSession:
    """
    Brackets one named store operation with debug/error log events.

    Exceptions always propagate.

        with DatabaseSession("find_manuals", db) as client:
            client.table("manuals").select("*").execute()
    """

    def __init__(self, operation_name: str, client: Optional[Client] = None):
        self.operation_name = operation_name
        self.client: Optional[Client] = client

    def __enter__(self) -> Client:
        logger.debug("db_operation_start", operation=self.operation_name)
        if self.client is None:
            self.client = get_supabase_client()
        return self.client

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            logger.debug("db_operation_complete", operation=self.operation_name)
            return False

        logger.error(
            "db_operation_failed",
            operation=self.operation_name,
            error=str(exc_val),
            error_type=exc_type.__name__
        )
        return False


# ===================
# HEALTH
# ===================

def check_connection() -> dict:
    """
    Row counts of products and manuals.

    Never raises: a failure comes back as {"status": "unhealthy", "error": ...}.
    """
    try:
        client = get_supabase_client()
        counts = {
            f"{table}_count": client.table(table).select("id", count="exact").execute().count
            for table in LOOKUP_TABLES
        }
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", **counts}
