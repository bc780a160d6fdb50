"""
Product API routes.

Admin CRUD for the serial number -> manual code mapping, plus bulk import.
All routes require a bearer token.
"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Optional, Union
import structlog

from models.base import BulkCreateResponse
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
)
from services.product_service import get_product_service
from exceptions import (
    ProductNotFoundError,
    ProductExistsError
)
from routes.errors import handle_error
from utils.auth import require_api_token

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_token)])


# ===================
# ROUTES
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    serial_number: Optional[str] = Query(None, description="Filter by serial number substring"),
    manual_code: Optional[str] = Query(None, description="Filter by manual code substring"),
    revision_code: Optional[str] = Query(None, description="Filter by revision code substring")
):
    """
    List products with optional filters.

    Returns paginated list of products, newest first.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            page=page,
            page_size=page_size,
            serial_number=serial_number,
            manual_code=manual_code,
            revision_code=revision_code
        )

        total_pages = (total + page_size - 1) // page_size

        return ProductListResponse(
            data=products,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages
        )

    except Exception as e:
        return handle_error(e)


@router.post("/bulk", response_model=BulkCreateResponse)
async def bulk_create_products(
    items: Union[list[dict], dict] = Body(..., description="One product or a list of products")
):
    """
    Import many products at once.

    Items without a revision code get the latest Italian revision of
    their manual. Each item is reported as created, skipped or error;
    one bad item does not stop the rest.
    """
    try:
        if isinstance(items, dict):
            items = [items]

        service = get_product_service()
        results = service.bulk_create(items)

        return BulkCreateResponse.from_results(results)

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        return service.get_by_id(product_id)

    except ProductNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreate):
    """
    Create a new product.

    Raises:
        409: Same serial number, manual code and revision already exist
        422: Validation error
    """
    try:
        service = get_product_service()
        return service.create(data)

    except ProductExistsError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, data: ProductUpdate):
    """
    Update an existing product.

    Only provided fields are updated.

    Raises:
        404: Product not found
        409: Update would duplicate another product
        422: Validation error
    """
    try:
        service = get_product_service()
        return service.update(product_id, data)

    except (ProductNotFoundError, ProductExistsError) as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str):
    """
    Delete a product.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        service.delete(product_id)
        return None  # 204 No Content

    except ProductNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)
