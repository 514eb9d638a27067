"""
Browse endpoints — public item listings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from givespot.api.v1.deps import get_data_service
from givespot.core.exceptions import RetrievalError
from givespot.db.data_service import DataService
from givespot.schemas.item import ItemFilter, ItemListResponse
from givespot.services.listings import list_items, search_items

router = APIRouter(prefix="/items", tags=["items"])


def _failed(response: Response, exc: RetrievalError) -> ItemListResponse:
    # The browse page still renders: empty list plus the error message
    response.status_code = exc.status_code
    return ItemListResponse(success=False, count=0, items=[], error=exc.message)


@router.get("", response_model=ItemListResponse)
async def browse_items(
    response: Response,
    postcode: str | None = Query(default=None, max_length=10),
    max_price: float | None = Query(default=None, ge=0),
    data: DataService = Depends(get_data_service),
) -> ItemListResponse:
    """Active items, newest first, optionally narrowed by charity postcode
    prefix and maximum price."""
    try:
        items = await list_items(
            data, ItemFilter(postcode_prefix=postcode, max_price=max_price)
        )
    except RetrievalError as exc:
        return _failed(response, exc)
    return ItemListResponse(count=len(items), items=items)


@router.get("/search", response_model=ItemListResponse)
async def search(
    response: Response,
    postcode: str | None = Query(default=None, max_length=10),
    data: DataService = Depends(get_data_service),
) -> ItemListResponse:
    """Postcode search box. Rejects anything that is not a UK postcode."""
    try:
        items = await search_items(data, postcode)
    except RetrievalError as exc:
        return _failed(response, exc)
    return ItemListResponse(count=len(items), items=items)
