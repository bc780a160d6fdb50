"""
Manual API routes.

Admin CRUD for manual variants (code + language + revision) and bulk import.
"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Optional, Union
import structlog

from models.base import BulkCreateResponse
from models.manual import (
    Language,
    ManualCreate,
    ManualUpdate,
    ManualResponse,
    ManualListResponse,
)
from services.manual_service import get_manual_service
from exceptions import (
    ManualNotFoundError,
    ManualExistsError
)
from routes.errors import handle_error
from utils.auth import require_api_token

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_api_token)])


@router.get("", response_model=ManualListResponse)
async def list_manuals(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    manual_code: Optional[str] = Query(None, description="Filter by manual code substring"),
    language: Optional[Language] = Query(None, description="Filter by language"),
    revision_code: Optional[str] = Query(None, description="Filter by revision code substring"),
    name: Optional[str] = Query(None, description="Filter by name substring")
):
    """List manual variants, newest first."""
    try:
        service = get_manual_service()

        manuals, total = service.get_all(
            page=page,
            page_size=page_size,
            manual_code=manual_code,
            language=language,
            revision_code=revision_code,
            name=name
        )

        return ManualListResponse(
            data=manuals,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size
        )

    except Exception as e:
        return handle_error(e)


@router.post("/bulk", response_model=BulkCreateResponse)
async def bulk_create_manuals(
    items: Union[list[dict], dict] = Body(..., description="One manual or a list of manuals")
):
    """
    Import many manual variants at once.

    Existing code/language/revision triples are skipped.
    """
    try:
        if isinstance(items, dict):
            items = [items]

        results = get_manual_service().bulk_create(items)
        return BulkCreateResponse.from_results(results)

    except Exception as e:
        return handle_error(e)


@router.get("/{manual_id}", response_model=ManualResponse)
async def get_manual(manual_id: str):
    """
    Get a single manual variant by ID.

    Raises:
        404: Manual not found
    """
    try:
        return get_manual_service().get_by_id(manual_id)

    except ManualNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ManualResponse, status_code=201)
async def create_manual(data: ManualCreate):
    """
    Create a manual variant.

    Raises:
        409: Variant already exists
        422: Validation error
    """
    try:
        return get_manual_service().create(data)

    except ManualExistsError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.patch("/{manual_id}", response_model=ManualResponse)
async def update_manual(manual_id: str, data: ManualUpdate):
    """
    Update a manual variant. Setting file_url publishes the file.

    Raises:
        404: Manual not found
        409: Update would duplicate another variant
    """
    try:
        return get_manual_service().update(manual_id, data)

    except (ManualNotFoundError, ManualExistsError) as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)


@router.delete("/{manual_id}", status_code=204)
async def delete_manual(manual_id: str):
    """
    Delete a manual variant.

    Raises:
        404: Manual not found
    """
    try:
        get_manual_service().delete(manual_id)
        return None

    except ManualNotFoundError as e:
        return handle_error(e)
    except Exception as e:
        return handle_error(e)
