"""
Manual service for admin operations.

A manual variant is unique per manual code + language + revision code.
File upload lives in object storage; only the resulting URL is stored here.
"""

from typing import Optional
import structlog
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from config import get_supabase_client, get_admin_client
from models.base import BulkItemResult, describe_validation_error
from models.manual import (
    Language,
    ManualCreate,
    ManualUpdate,
    ManualResponse,
)
from exceptions import (
    ManualNotFoundError,
    ManualExistsError,
    DatabaseError
)

logger = structlog.get_logger(__name__)


class ManualService:
    """
    Manual business logic.

    Handles CRUD operations and bulk import for manual variants.
    """

    def __init__(self, db: Optional[Client] = None):
        # Admin writes use the service-role key when one is configured
        self.db = db if db is not None else (get_admin_client() or get_supabase_client())
        self.table = "manuals"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        page_size: int = 20,
        manual_code: Optional[str] = None,
        language: Optional[Language] = None,
        revision_code: Optional[str] = None,
        name: Optional[str] = None
    ) -> tuple[list[ManualResponse], int]:
        """
        Get all manuals with optional filters.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            manual_code: Filter by manual code substring
            language: Filter by exact language
            revision_code: Filter by revision code substring
            name: Filter by name substring

        Returns:
            Tuple of (manuals list, total count)
        """
        logger.info(
            "getting_manuals",
            page=page,
            page_size=page_size,
            manual_code=manual_code,
            language=language
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")

            if manual_code:
                query = query.ilike("manual_code", f"%{manual_code}%")
            if language:
                query = query.eq("language", language.value)
            if revision_code:
                query = query.ilike("revision_code", f"%{revision_code}%")
            if name:
                query = query.ilike("name", f"%{name}%")

            offset = (page - 1) * page_size
            query = query.order("created_at", desc=True).range(offset, offset + page_size - 1)

            result = query.execute()

            manuals = [ManualResponse(**row) for row in result.data]
            total = result.count or 0

            logger.info("manuals_retrieved", count=len(manuals), total=total)

            return manuals, total

        except Exception as e:
            logger.error("get_manuals_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, manual_id: str) -> ManualResponse:
        """
        Get a single manual by ID.

        Raises:
            ManualNotFoundError: If manual doesn't exist
        """
        logger.debug("getting_manual", manual_id=manual_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", manual_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_manual_failed", manual_id=manual_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ManualNotFoundError(manual_id)

        return ManualResponse(**result.data[0])

    def find_existing(
        self,
        manual_code: str,
        language: str,
        revision_code: Optional[str],
        exclude_id: Optional[str] = None
    ) -> Optional[ManualResponse]:
        """Find the variant with exactly this code, language and revision."""
        try:
            query = (
                self.db.table(self.table)
                .select("*")
                .eq("manual_code", manual_code)
                .eq("language", language)
            )
            if revision_code is None:
                query = query.is_("revision_code", "null")
            else:
                query = query.eq("revision_code", revision_code)
            if exclude_id:
                query = query.neq("id", exclude_id)

            result = query.limit(1).execute()
            return ManualResponse(**result.data[0]) if result.data else None

        except Exception as e:
            logger.error(
                "find_existing_manual_failed",
                manual_code=manual_code,
                language=language,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ManualCreate) -> ManualResponse:
        """
        Create a new manual variant.

        Raises:
            ManualExistsError: If the same code/language/revision exists
        """
        logger.info(
            "creating_manual",
            manual_code=data.manual_code,
            language=data.language.value
        )

        if self.find_existing(data.manual_code, data.language.value, data.revision_code):
            raise ManualExistsError(data.manual_code, data.language.value, data.revision_code)

        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )

            manual = ManualResponse(**result.data[0])

            logger.info(
                "manual_created",
                manual_id=manual.id,
                manual_code=manual.manual_code,
                has_file=bool(manual.file_url)
            )

            return manual

        except Exception as e:
            logger.error("create_manual_failed", manual_code=data.manual_code, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, manual_id: str, data: ManualUpdate) -> ManualResponse:
        """
        Update an existing manual.

        Only provided fields are updated.

        Raises:
            ManualNotFoundError: If manual doesn't exist
            ManualExistsError: If the change collides with another variant
        """
        logger.info("updating_manual", manual_id=manual_id)

        existing = self.get_by_id(manual_id)

        update_data = data.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            return existing

        merged = existing.model_copy(update=update_data)
        if self.find_existing(
            merged.manual_code,
            merged.language,
            merged.revision_code,
            exclude_id=manual_id
        ):
            raise ManualExistsError(merged.manual_code, merged.language, merged.revision_code)

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", manual_id)
                .execute()
            )

            manual = ManualResponse(**result.data[0])

            logger.info(
                "manual_updated",
                manual_id=manual_id,
                fields=list(update_data.keys())
            )

            return manual

        except Exception as e:
            logger.error("update_manual_failed", manual_id=manual_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, manual_id: str) -> bool:
        """
        Delete a manual variant.

        Raises:
            ManualNotFoundError: If manual doesn't exist
        """
        logger.info("deleting_manual", manual_id=manual_id)

        self.get_by_id(manual_id)

        try:
            self.db.table(self.table).delete().eq("id", manual_id).execute()
            logger.info("manual_deleted", manual_id=manual_id)
            return True

        except Exception as e:
            logger.error("delete_manual_failed", manual_id=manual_id, error=str(e))
            raise DatabaseError("delete", str(e))

    # ===================
    # BULK OPERATIONS
    # ===================

    def bulk_create(self, items: list[dict]) -> list[BulkItemResult]:
        """
        Create many manual variants, skipping duplicates.

        Args:
            items: Raw manual payloads

        Returns:
            One BulkItemResult per item, in input order
        """
        logger.info("bulk_create_manuals", count=len(items))

        results = []

        for index, raw in enumerate(items):
            try:
                data = ManualCreate.model_validate(raw)
            except PydanticValidationError as e:
                results.append(BulkItemResult(
                    index=index,
                    status="error",
                    data=raw if isinstance(raw, dict) else None,
                    error=describe_validation_error(e)
                ))
                continue

            try:
                if self.find_existing(data.manual_code, data.language.value, data.revision_code):
                    results.append(BulkItemResult(
                        index=index,
                        status="skipped",
                        data=data.model_dump(mode="json"),
                        error="Manual already exists with same manual_code, language and revision_code"
                    ))
                    continue

                inserted = self.db.table(self.table).insert(data.model_dump(mode="json")).execute()
                results.append(BulkItemResult(index=index, status="created", data=inserted.data[0]))

            except Exception as e:
                logger.error(
                    "bulk_create_manual_failed",
                    index=index,
                    manual_code=data.manual_code,
                    error=str(e)
                )
                results.append(BulkItemResult(
                    index=index,
                    status="error",
                    data=data.model_dump(mode="json"),
                    error=str(e)
                ))

        logger.info(
            "bulk_create_manuals_complete",
            created=sum(1 for r in results if r.status == "created"),
            skipped=sum(1 for r in results if r.status == "skipped")
        )
        return results

    # ===================
    # UTILITY METHODS
    # ===================

    def count(self) -> int:
        """Count total manual variants."""
        try:
            result = self.db.table(self.table).select("id", count="exact").execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_manuals_failed", error=str(e))
            raise DatabaseError("count", str(e))

    def count_without_file(self) -> int:
        """Count variants whose PDF has not been uploaded yet."""
        try:
            result = (
                self.db.table(self.table)
                .select("id", count="exact")
                .is_("file_url", "null")
                .execute()
            )
            return result.count or 0
        except Exception as e:
            logger.error("count_manuals_without_file_failed", error=str(e))
            raise DatabaseError("count", str(e))

    def recent(self, limit: int = 5) -> list[ManualResponse]:
        """Most recently created manual variants."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return [ManualResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("recent_manuals_failed", error=str(e))
            raise DatabaseError("select", str(e))


# Singleton instance for convenience
_manual_service: Optional[ManualService] = None

def get_manual_service() -> ManualService:
    """Get or create ManualService instance."""
    global _manual_service
    if _manual_service is None:
        _manual_service = ManualService()
    return _manual_service
