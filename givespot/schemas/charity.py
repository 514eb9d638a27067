"""Pydantic schemas for charity registration, profile and sessions."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from givespot.schemas.common import MessageResponse


# ── Registration ────────────────────────────────────────────────────
class CharityApplication(BaseModel):
    """Registration form. Required fields are checked by the session manager
    so the error can name the first missing one."""

    name: str | None = None
    email: str | None = None
    postcode: str | None = None
    contact_person: str | None = Field(
        default=None, validation_alias=AliasChoices("contact_person", "contactPerson")
    )
    registration_number: str | None = None
    address: str | None = None
    phone: str | None = None
    contact_position: str | None = None
    password: str | None = None


class CharityRead(BaseModel):
    id: int
    name: str
    email: str
    postcode: str
    address: str | None = None
    phone: str | None = None
    contact_person: str
    contact_position: str | None = None
    registration_number: str | None = None
    status: str
    balance: float
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class CharityUpdate(BaseModel):
    name: str | None = None
    postcode: str | None = None
    address: str | None = None
    phone: str | None = None
    contact_person: str | None = None
    contact_position: str | None = None
    registration_number: str | None = None


class PasswordSetup(BaseModel):
    password: str


class CharityStats(BaseModel):
    total_items: int = 0
    active_items: int = 0
    sold_items: int = 0
    this_month_items: int = 0


# ── Session ─────────────────────────────────────────────────────────
class CharitySession(BaseModel):
    """Snapshot stored in the session slot; serialised with camel-case
    ``loginTimeUtc``."""

    id: int
    name: str
    email: str
    postcode: str
    balance: float = 0.0
    login_time_utc: datetime = Field(alias="loginTimeUtc")

    model_config = {"populate_by_name": True}


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    redirect: str
    charity: CharitySession


class LogoutResponse(MessageResponse):
    redirect: str


class DashboardResponse(BaseModel):
    charity: CharitySession
    stats: CharityStats
