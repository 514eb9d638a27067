"""Pydantic schemas for item listings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ItemFilter(BaseModel):
    postcode_prefix: str | None = Field(default=None, alias="postcode")
    max_price: float | None = None

    model_config = {"populate_by_name": True}


class CharitySnapshot(BaseModel):
    """Read-only projection of the owning charity at query time."""

    name: str | None = None
    postcode: str | None = None
    address: str | None = None


class ItemListing(BaseModel):
    id: int
    item_code: str
    price: float
    image_urls: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime | None = None
    charity: CharitySnapshot
    price_display: str
    code_display: str
    listed_ago: str


class ItemListResponse(BaseModel):
    success: bool = True
    count: int
    items: list[ItemListing]
    error: str | None = None


class ItemCreate(BaseModel):
    price: float
    image_urls: list[str] = Field(default_factory=list)


class ItemRead(BaseModel):
    id: int
    item_code: str
    price: float
    image_urls: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime | None = None
    charity_id: int

    model_config = {"from_attributes": True}
