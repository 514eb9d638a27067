"""
Pure validation and display-formatting helpers.

The formatters never raise: missing or malformed input yields a fixed
placeholder string.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)
_PHONE_RE = re.compile(
    r"^(\+44\s?|0)(\d{4}\s?\d{3}\s?\d{3}|\d{3}\s?\d{3}\s?\d{4}|\d{2}\s?\d{4}\s?\d{4})$"
)
_WHITESPACE_RE = re.compile(r"\s")


# ── Validation ──────────────────────────────────────────────────────
def is_valid_email(email: str | None) -> bool:
    if not email:
        return False
    return bool(_EMAIL_RE.match(email))


def is_valid_postcode(postcode: str | None) -> bool:
    """UK postcode shape, e.g. ``M1 1AA`` or ``sw1a1aa``."""
    if not postcode:
        return False
    return bool(_POSTCODE_RE.match(postcode.strip()))


def is_valid_phone(phone: str | None) -> bool:
    """Approximate UK mobile / landline check (whitespace ignored)."""
    if not phone:
        return False
    return bool(_PHONE_RE.match(_WHITESPACE_RE.sub("", phone)))


# ── Formatting ──────────────────────────────────────────────────────
def format_price(price: Any) -> str:
    try:
        value = float(price)
    except (TypeError, ValueError, OverflowError):
        value = 0.0
    if value != value or value in (float("inf"), float("-inf")):  # NaN / inf
        value = 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}£{abs(value):,.2f}"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_date(value: Any) -> str:
    if not value:
        return "Unknown"
    try:
        return _parse_datetime(value).strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return "Invalid date"


def format_item_code(code: Any) -> str:
    if not code:
        return "Unknown"
    return str(code).upper()


def time_ago(value: Any, now: datetime | None = None) -> str:
    if not value:
        return "Unknown"
    try:
        then = _parse_datetime(value)
        current = _parse_datetime(now) if now else datetime.now(timezone.utc)
        seconds = int((current - then).total_seconds())
    except (TypeError, ValueError, OverflowError):
        return "Unknown"

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60} minutes ago"
    if seconds < 86400:
        return f"{seconds // 3600} hours ago"
    if seconds < 604800:
        return f"{seconds // 86400} days ago"
    return format_date(then)
