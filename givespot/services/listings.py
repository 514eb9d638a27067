"""
Listing retrieval and charity-side item management.
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from givespot.core.exceptions import (NotFound, RetrievalError, StorageError,
                                      ValidationError)
from givespot.core.validators import (format_item_code, format_price,
                                      is_valid_postcode, time_ago)
from givespot.db.data_service import (UNIQUE_VIOLATION, DataService,
                                      DataServiceError, Filter, Order)
from givespot.schemas.item import (CharitySnapshot, ItemCreate, ItemFilter,
                                   ItemListing, ItemRead)

logger = logging.getLogger(__name__)

LISTING_COLUMNS = [
    "id",
    "item_code",
    "price",
    "image_urls",
    "status",
    "created_at",
    "charities.name",
    "charities.postcode",
    "charities.address",
]
ITEM_COLUMNS = ["id", "item_code", "price", "image_urls", "status", "created_at", "charity_id"]

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_ATTEMPTS = 5


def generate_item_code() -> str:
    return "GS-" + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))


def _to_listing(row: dict[str, Any], now: datetime | None) -> ItemListing:
    return ItemListing(
        id=row["id"],
        item_code=row["item_code"],
        price=row["price"],
        image_urls=row["image_urls"] or [],
        status=row["status"],
        created_at=row["created_at"],
        charity=CharitySnapshot(**(row.get("charities") or {})),
        price_display=format_price(row["price"]),
        code_display=format_item_code(row["item_code"]),
        listed_ago=time_ago(row["created_at"], now=now),
    )


# ── Shopper-facing ──────────────────────────────────────────────────
async def list_items(
    data: DataService,
    filters: ItemFilter | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> list[ItemListing]:
    """Active items, newest first, each with its charity's display fields.

    ``postcode_prefix`` matches the *charity's* postcode, case-insensitively.
    Raises :class:`RetrievalError` when the backend fails; an empty catalogue
    is just an empty list.
    """
    if isinstance(filters, Mapping):
        filters = ItemFilter.model_validate(filters)

    conditions = [Filter.eq("status", "active")]
    if filters is not None:
        prefix = (filters.postcode_prefix or "").strip()
        if prefix:
            conditions.append(Filter.prefix("charities.postcode", prefix))
        if filters.max_price is not None:
            conditions.append(Filter.lte("price", filters.max_price))

    try:
        rows = await data.select(
            "items",
            LISTING_COLUMNS,
            conditions,
            order=Order("created_at", descending=True),
        )
    except DataServiceError as exc:
        logger.error("Error loading items: %s", exc.message)
        raise RetrievalError(f"Failed to load items: {exc.message}") from exc

    logger.debug("Loaded %d items", len(rows))
    return [_to_listing(row, now) for row in rows]


async def search_items(data: DataService, postcode: str | None) -> list[ItemListing]:
    """Postcode search box: blank shows everything, otherwise it must look
    like a UK postcode."""
    if not postcode or not postcode.strip():
        return await list_items(data)
    if not is_valid_postcode(postcode):
        raise ValidationError(
            "Please enter a valid UK postcode (e.g. M1 1AA)", field="postcode"
        )
    return await list_items(data, ItemFilter(postcode_prefix=postcode.strip()))


# ── Charity dashboard ───────────────────────────────────────────────
async def list_charity_items(data: DataService, charity_id: int) -> list[ItemRead]:
    try:
        rows = await data.select(
            "items",
            ITEM_COLUMNS,
            [Filter.eq("charity_id", charity_id)],
            order=Order("created_at", descending=True),
        )
    except DataServiceError as exc:
        raise RetrievalError(f"Failed to load items: {exc.message}") from exc
    return [ItemRead.model_validate(row) for row in rows]


async def create_item(
    data: DataService, charity_id: int, item: ItemCreate | Mapping[str, Any]
) -> ItemRead:
    if not isinstance(item, ItemCreate):
        item = ItemCreate.model_validate(item)
    if item.price <= 0:
        raise ValidationError("Price must be greater than zero", field="price")

    for attempt in range(1, _CODE_ATTEMPTS + 1):
        record = {
            "item_code": generate_item_code(),
            "price": round(item.price, 2),
            "image_urls": list(item.image_urls),
            "status": "active",
            "charity_id": charity_id,
        }
        try:
            row = await data.insert("items", record)
        except DataServiceError as exc:
            if exc.code == UNIQUE_VIOLATION:
                logger.warning(
                    "Item code collision on %s (attempt %d/%d)",
                    record["item_code"], attempt, _CODE_ATTEMPTS,
                )
                continue
            raise StorageError(f"Failed to create item: {exc.message}") from exc
        logger.info("Charity %s listed item %s", charity_id, row["item_code"])
        return ItemRead.model_validate(row)

    raise StorageError("Failed to create item: could not allocate an item code")


async def remove_item(data: DataService, charity_id: int, item_id: int) -> ItemRead:
    """Withdraw an active item owned by *charity_id* (active → removed)."""
    owned = [Filter.eq("id", item_id), Filter.eq("charity_id", charity_id)]
    try:
        rows = await data.select("items", ["id", "status"], owned, limit=1)
    except DataServiceError as exc:
        raise RetrievalError(f"Failed to load item: {exc.message}") from exc
    if not rows:
        raise NotFound("Item not found")
    if rows[0]["status"] != "active":
        raise ValidationError(
            f"Only active items can be removed (item is {rows[0]['status']})",
            field="status",
        )

    try:
        updated = await data.update(
            "items", {"status": "removed"}, [*owned, Filter.eq("status", "active")]
        )
    except DataServiceError as exc:
        raise StorageError(f"Failed to remove item: {exc.message}") from exc
    if updated is None:
        raise NotFound("Item not found")
    logger.info("Charity %s removed item %s", charity_id, updated["item_code"])
    return ItemRead.model_validate(updated)
