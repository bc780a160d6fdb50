"""
Manual resolver.

Maps a serial number to the manuals a customer may download, and a
serial number + manual code + language to a single file.

Rules:
    - Serial numbers, manual codes, languages and revision codes match exactly.
    - A product with a revision code only sees manuals of that revision.
    - Variants of one manual code are grouped, one entry per language.
    - Description priority is IT, then EN, then the first language seen.

The resolver only reads from the store. Audit logging is done by the
caller with the products/manuals exposed on the results.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, TypeVar
import structlog
from supabase import Client

from config import get_supabase_client, DatabaseSession
from models.lookup import GroupedManual
from models.manual import ManualResponse
from models.product import ProductResponse
from exceptions import (
    AppError,
    DatabaseError,
    MissingParameterError,
    ProductNotFoundError,
    ManualNotFoundError,
    FileNotAvailableError,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", ProductResponse, ManualResponse)


DESCRIPTION_PRIORITY = ("IT", "EN")
DEFAULT_DESCRIPTION = "Manuale per ventilatore Ferrari"
DEFAULT_NAME = "Manuale Standard"
DEFAULT_REVISION = "001"
FILE_NAME_REVISION_PLACEHOLDER = "Rev001"

MANUAL_NAMES = {
    "MVC_STD": "Manuale Ventilatore Standard",
    "ROLLOUT": "Manuale Installazione Rollout",
    "SWINGOUT": "Manuale Installazione Swingout",
    "MAINTENANCE": "Manuale Manutenzione",
    "TECHNICAL": "Specifiche Tecniche",
}


# ===================
# PURE HELPERS
# ===================

def select_best_description(descriptions: Mapping[str, Optional[str]]) -> str:
    """
    Pick the display description of a manual group.

    Italian is the default store language, so IT wins, then EN, then the
    first language inserted. Empty values count as missing.

    Args:
        descriptions: Language code → description, in insertion order

    Returns:
        The chosen description, or DEFAULT_DESCRIPTION if there is none
    """
    for language in DESCRIPTION_PRIORITY:
        if descriptions.get(language):
            return descriptions[language]

    for description in descriptions.values():
        if description:
            return description

    return DEFAULT_DESCRIPTION


def resolve_manual_name(manual_code: Optional[str], names: list[Optional[str]]) -> str:
    """
    Display name of a manual group.

    First non-blank name stored on a manual row, else the name known for the
    manual code, else DEFAULT_NAME.
    """
    for name in names:
        if name and name.strip():
            return name.strip()

    if manual_code and manual_code in MANUAL_NAMES:
        return MANUAL_NAMES[manual_code]

    return DEFAULT_NAME


def build_file_name(manual_code: str, language: str, revision_code: Optional[str]) -> str:
    """Suggested download name, e.g. MVC_STD_EN_001.pdf."""
    revision = revision_code or FILE_NAME_REVISION_PLACEHOLDER
    return f"{manual_code}_{language}_{revision}.pdf"


# ===================
# RESULTS
# ===================

@dataclass
class SearchResult:
    """Grouped manuals for a serial number plus what the caller needs to log."""
    serial_number: str
    groups: list[GroupedManual] = field(default_factory=list)
    products: list[ProductResponse] = field(default_factory=list)
    manuals_found: int = 0

    @property
    def product_found(self) -> bool:
        return bool(self.products)


@dataclass
class DownloadResult:
    """File to hand to the browser, with the rows it was resolved from."""
    file_url: str
    file_name: str
    product: ProductResponse
    manual: ManualResponse


@dataclass
class _ManualGroup:
    manual_code: Optional[str]
    revision: str
    languages: list[str] = field(default_factory=list)
    file_urls: dict[str, str] = field(default_factory=dict)
    descriptions: dict[str, str] = field(default_factory=dict)
    names: list[Optional[str]] = field(default_factory=list)

    def add(self, manual: ManualResponse) -> None:
        self.names.append(manual.name)
        if not manual.language or manual.language in self.languages:
            return
        self.languages.append(manual.language)
        if manual.file_url:
            self.file_urls[manual.language] = manual.file_url
        if manual.description:
            self.descriptions[manual.language] = manual.description

    def build(self, serial_number: str) -> GroupedManual:
        return GroupedManual(
            serial_number=serial_number,
            manual_code=self.manual_code,
            name=resolve_manual_name(self.manual_code, self.names),
            description=select_best_description(self.descriptions),
            descriptions=dict(self.descriptions),
            revision=self.revision,
            languages=list(self.languages),
            file_urls=dict(self.file_urls),
        )


# ===================
# RESOLVER
# ===================

class ManualResolver:
    """
    Resolves serial numbers to manuals.

    Args:
        db: Store client. Defaults to the configured Supabase client.
    """

    def __init__(self, db: Optional[Client] = None):
        self.db = db if db is not None else get_supabase_client()
        self.products_table = "products"
        self.manuals_table = "manuals"

    # ===================
    # SEARCH
    # ===================

    def resolve_manuals_for_serial(self, serial_number: Optional[str]) -> SearchResult:
        """
        Find every manual available for a serial number.

        Args:
            serial_number: Serial number printed on the product

        Returns:
            SearchResult; empty groups when no product matches

        Raises:
            MissingParameterError: If serial_number is blank
            DatabaseError: If a store query fails
        """
        serial_number = (serial_number or "").strip()
        if not serial_number:
            raise MissingParameterError("serial_number")

        logger.info("searching_manuals", serial_number=serial_number)

        products = self._find_products(serial_number)
        if not products:
            logger.info("no_product_found", serial_number=serial_number)
            return SearchResult(serial_number=serial_number)

        result = SearchResult(serial_number=serial_number, products=products)

        for product in products:
            if not product.manual_code:
                continue

            manuals = self._find_manuals(product.manual_code, product.revision_code)
            if not manuals:
                logger.info(
                    "no_manuals_for_product",
                    serial_number=serial_number,
                    manual_code=product.manual_code,
                    revision_code=product.revision_code
                )
                continue

            result.manuals_found += len(manuals)
            result.groups.extend(self._group_manuals(serial_number, product, manuals))

        logger.info(
            "manuals_resolved",
            serial_number=serial_number,
            products=len(products),
            manuals=result.manuals_found,
            groups=len(result.groups)
        )

        return result

    def _group_manuals(
        self,
        serial_number: str,
        product: ProductResponse,
        manuals: list[ManualResponse]
    ) -> list[GroupedManual]:
        groups: dict[Optional[str], _ManualGroup] = {}

        for manual in manuals:
            group = groups.get(manual.manual_code)
            if group is None:
                group = _ManualGroup(
                    manual_code=manual.manual_code,
                    revision=manual.revision_code or product.revision_code or DEFAULT_REVISION
                )
                groups[manual.manual_code] = group
            group.add(manual)

        return [group.build(serial_number) for group in groups.values()]

    # ===================
    # DOWNLOAD
    # ===================

    def resolve_download(
        self,
        serial_number: Optional[str],
        manual_code: Optional[str],
        language: Optional[str]
    ) -> DownloadResult:
        """
        Resolve the file for one manual variant of a product.

        Args:
            serial_number: Serial number printed on the product
            manual_code: Manual code of one of the product's manuals
            language: 2-letter language code

        Returns:
            DownloadResult with file URL and suggested file name

        Raises:
            MissingParameterError: If any parameter is blank
            ProductNotFoundError: No product with this serial number and manual code
            ManualNotFoundError: No manual for this code, language and revision
            FileNotAvailableError: The manual has no file yet
            DatabaseError: If a store query fails
        """
        serial_number = (serial_number or "").strip()
        manual_code = (manual_code or "").strip()
        language = (language or "").strip().upper()

        missing = [
            name for name, value in (
                ("serial_number", serial_number),
                ("manual_code", manual_code),
                ("language", language),
            )
            if not value
        ]
        if missing:
            raise MissingParameterError(*missing)

        logger.info(
            "resolving_download",
            serial_number=serial_number,
            manual_code=manual_code,
            language=language
        )

        product = self._find_product(serial_number, manual_code)
        if product is None:
            logger.warning(
                "download_product_not_found",
                serial_number=serial_number,
                manual_code=manual_code
            )
            raise ProductNotFoundError(serial_number, manual_code)

        manual = self._find_manual_variant(manual_code, language, product.revision_code)
        if manual is None:
            logger.warning(
                "download_manual_not_found",
                manual_code=manual_code,
                language=language,
                revision_code=product.revision_code
            )
            raise ManualNotFoundError(manual_code, language, product.revision_code)

        if not manual.file_url:
            logger.warning(
                "download_file_not_available",
                manual_id=manual.id,
                manual_code=manual_code,
                language=language
            )
            raise FileNotAvailableError(manual.id, manual_code, language, manual.revision_code)

        file_name = build_file_name(manual_code, language, product.revision_code)

        logger.info(
            "download_resolved",
            serial_number=serial_number,
            manual_id=manual.id,
            file_name=file_name
        )

        return DownloadResult(
            file_url=manual.file_url,
            file_name=file_name,
            product=product,
            manual=manual
        )

    # ===================
    # QUERIES
    # ===================

    def _find_products(self, serial_number: str) -> list[ProductResponse]:
        return self._select(
            "find_products_by_serial",
            ProductResponse,
            lambda client: (
                client.table(self.products_table)
                .select("*")
                .eq("serial_number", serial_number)
                .order("created_at")
            )
        )

    def _find_product(self, serial_number: str, manual_code: str) -> Optional[ProductResponse]:
        products = self._select(
            "find_product_for_download",
            ProductResponse,
            lambda client: (
                client.table(self.products_table)
                .select("*")
                .eq("serial_number", serial_number)
                .eq("manual_code", manual_code)
                .order("created_at", desc=True)
                .limit(1)
            )
        )
        return products[0] if products else None

    def _find_manuals(
        self,
        manual_code: str,
        revision_code: Optional[str]
    ) -> list[ManualResponse]:
        def query(client: Client):
            q = client.table(self.manuals_table).select("*").eq("manual_code", manual_code)
            if revision_code:
                q = q.eq("revision_code", revision_code)
            return q.order("created_at", desc=True)

        return self._select("find_manuals", ManualResponse, query)

    def _find_manual_variant(
        self,
        manual_code: str,
        language: str,
        revision_code: Optional[str]
    ) -> Optional[ManualResponse]:
        def query(client: Client):
            q = (
                client.table(self.manuals_table)
                .select("*")
                .eq("manual_code", manual_code)
                .eq("language", language)
            )
            if revision_code:
                q = q.eq("revision_code", revision_code)
            return q.order("created_at", desc=True).limit(1)

        manuals = self._select("find_manual_variant", ManualResponse, query)
        return manuals[0] if manuals else None

    def _select(self, operation: str, model: type[ModelT], build_query) -> list[ModelT]:
        """
        Run a read query and parse its rows into `model`.

        Store failures and rows that don't fit the schema both raise
        DatabaseError.
        """
        try:
            with DatabaseSession(operation, self.db) as client:
                rows = build_query(client).execute().data or []
                return [model(**row) for row in rows]
        except AppError:
            raise
        except Exception as e:
            raise DatabaseError("select", str(e), details={"query": operation}) from e


# Singleton instance for convenience
_manual_resolver: Optional[ManualResolver] = None

def get_manual_resolver() -> ManualResolver:
    """Get or create ManualResolver instance."""
    global _manual_resolver
    if _manual_resolver is None:
        _manual_resolver = ManualResolver()
    return _manual_resolver
