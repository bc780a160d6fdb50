"""
Product service for admin operations.

Products are identified by serial number + manual code + revision code;
the same serial number may appear once per manual it ships with.
"""

from typing import Optional
import structlog
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from config import get_supabase_client, get_admin_client
from models.base import BulkItemResult, describe_validation_error
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
)
from exceptions import (
    ProductNotFoundError,
    ProductExistsError,
    DatabaseError
)
from utils.text_utils import latest_revision_code

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Product business logic.

    Handles CRUD operations and bulk import for products.
    """

    def __init__(self, db: Optional[Client] = None):
        # Admin writes use the service-role key when one is configured
        self.db = db if db is not None else (get_admin_client() or get_supabase_client())
        self.table = "products"
        self.manuals_table = "manuals"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        page_size: int = 20,
        serial_number: Optional[str] = None,
        manual_code: Optional[str] = None,
        revision_code: Optional[str] = None
    ) -> tuple[list[ProductResponse], int]:
        """
        Get all products with optional filters.

        Filters are substring matches; this listing is admin-only.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            serial_number: Filter by serial number substring
            manual_code: Filter by manual code substring
            revision_code: Filter by revision code substring

        Returns:
            Tuple of (products list, total count)
        """
        logger.info(
            "getting_products",
            page=page,
            page_size=page_size,
            serial_number=serial_number,
            manual_code=manual_code
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")

            if serial_number:
                query = query.ilike("serial_number", f"%{serial_number}%")
            if manual_code:
                query = query.ilike("manual_code", f"%{manual_code}%")
            if revision_code:
                query = query.ilike("revision_code", f"%{revision_code}%")

            # Newest first
            query = query.order("created_at", desc=True)

            offset = (page - 1) * page_size
            query = query.range(offset, offset + page_size - 1)

            result = query.execute()

            products = [ProductResponse(**row) for row in result.data]
            total = result.count or 0

            logger.info(
                "products_retrieved",
                count=len(products),
                total=total
            )

            return products, total

        except Exception as e:
            logger.error(
                "get_products_failed",
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Args:
            product_id: Product UUID

        Returns:
            ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return ProductResponse(**result.data[0])

    def find_existing(
        self,
        serial_number: str,
        manual_code: Optional[str],
        revision_code: Optional[str],
        exclude_id: Optional[str] = None
    ) -> Optional[ProductResponse]:
        """
        Find a product with exactly this serial number, manual code and revision.

        Args:
            exclude_id: Ignore this product (for updates)

        Returns:
            ProductResponse or None if not found
        """
        try:
            query = (
                self.db.table(self.table)
                .select("*")
                .eq("serial_number", serial_number)
            )
            query = self._eq_or_null(query, "manual_code", manual_code)
            query = self._eq_or_null(query, "revision_code", revision_code)
            if exclude_id:
                query = query.neq("id", exclude_id)

            result = query.limit(1).execute()

            if not result.data:
                return None
            return ProductResponse(**result.data[0])

        except Exception as e:
            logger.error(
                "find_existing_product_failed",
                serial_number=serial_number,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Args:
            data: Product creation data

        Returns:
            Created ProductResponse

        Raises:
            ProductExistsError: If the same serial/manual/revision exists
        """
        logger.info("creating_product", serial_number=data.serial_number)

        if self.find_existing(data.serial_number, data.manual_code, data.revision_code):
            raise ProductExistsError(data.serial_number, data.manual_code, data.revision_code)

        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump())
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_created",
                product_id=product.id,
                serial_number=product.serial_number
            )

            return product

        except Exception as e:
            logger.error(
                "create_product_failed",
                serial_number=data.serial_number,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product.

        Args:
            product_id: Product UUID
            data: Fields to update

        Returns:
            Updated ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
            ProductExistsError: If the change collides with another product
        """
        logger.info("updating_product", product_id=product_id)

        existing = self.get_by_id(product_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            # Nothing to update, return existing
            return existing

        merged = existing.model_copy(update=update_data)
        if self.find_existing(
            merged.serial_number,
            merged.manual_code,
            merged.revision_code,
            exclude_id=product_id
        ):
            raise ProductExistsError(merged.serial_number, merged.manual_code, merged.revision_code)

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_updated",
                product_id=product_id,
                fields=list(update_data.keys())
            )

            return product

        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

    def delete(self, product_id: str) -> bool:
        """
        Delete a product.

        Args:
            product_id: Product UUID

        Returns:
            True if deleted

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id)

        self.get_by_id(product_id)

        try:
            self.db.table(self.table).delete().eq("id", product_id).execute()

            logger.info("product_deleted", product_id=product_id)

            return True

        except Exception as e:
            logger.error(
                "delete_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

    # ===================
    # BULK OPERATIONS
    # ===================

    def bulk_create(self, items: list[dict]) -> list[BulkItemResult]:
        """
        Create many products, skipping duplicates.

        Items are validated one by one. Items without a revision code get
        the latest revision of the Italian manual for their manual code
        ("000" if there is none). One failing item never stops the others.

        Args:
            items: Raw product payloads

        Returns:
            One BulkItemResult per item, in input order
        """
        logger.info("bulk_create_products", count=len(items))

        results = []

        for index, raw in enumerate(items):
            try:
                data = ProductCreate.model_validate(raw)
            except PydanticValidationError as e:
                results.append(BulkItemResult(
                    index=index,
                    status="error",
                    data=raw if isinstance(raw, dict) else None,
                    error=describe_validation_error(e)
                ))
                continue

            if not data.manual_code:
                results.append(BulkItemResult(
                    index=index,
                    status="error",
                    data=data.model_dump(),
                    error="serial_number and manual_code are required"
                ))
                continue

            try:
                revision_code = data.revision_code or self.latest_revision(data.manual_code)
                item = data.model_copy(update={"revision_code": revision_code})

                if self.find_existing(item.serial_number, item.manual_code, item.revision_code):
                    results.append(BulkItemResult(
                        index=index,
                        status="skipped",
                        data=item.model_dump(),
                        error="Product already exists with same serial_number, manual_code and revision_code",
                        assigned_revision_code=revision_code
                    ))
                    continue

                inserted = self.db.table(self.table).insert(item.model_dump()).execute()
                results.append(BulkItemResult(
                    index=index,
                    status="created",
                    data=inserted.data[0],
                    assigned_revision_code=revision_code
                ))

            except Exception as e:
                logger.error(
                    "bulk_create_product_failed",
                    index=index,
                    serial_number=data.serial_number,
                    error=str(e)
                )
                results.append(BulkItemResult(
                    index=index,
                    status="error",
                    data=data.model_dump(),
                    error=str(e)
                ))

        logger.info(
            "bulk_create_products_complete",
            created=sum(1 for r in results if r.status == "created"),
            skipped=sum(1 for r in results if r.status == "skipped")
        )
        return results

    def latest_revision(self, manual_code: str) -> str:
        """Highest revision code among the Italian variants of a manual."""
        try:
            result = (
                self.db.table(self.manuals_table)
                .select("revision_code")
                .eq("manual_code", manual_code)
                .eq("language", "IT")
                .execute()
            )
        except Exception as e:
            logger.error("latest_revision_failed", manual_code=manual_code, error=str(e))
            raise DatabaseError("select", str(e))

        return latest_revision_code([row.get("revision_code") for row in result.data])

    # ===================
    # UTILITY METHODS
    # ===================

    def count(self) -> int:
        """Count total products."""
        try:
            result = self.db.table(self.table).select("id", count="exact").execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_products_failed", error=str(e))
            raise DatabaseError("count", str(e))

    def recent(self, limit: int = 5) -> list[ProductResponse]:
        """Most recently created products."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return [ProductResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("recent_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    @staticmethod
    def _eq_or_null(query, column: str, value: Optional[str]):
        if value is None:
            return query.is_(column, "null")
        return query.eq(column, value)


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
