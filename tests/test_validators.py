"""Tests for the pure validation and formatting helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from givespot.core.validators import (format_date, format_item_code,
                                      format_price, is_valid_email,
                                      is_valid_phone, is_valid_postcode,
                                      time_ago)


@pytest.mark.parametrize(
    "postcode",
    ["M1 1AA", "m1 1aa", "SW1A 1AA", "EC1A1BB", "B33 8TH", "  CR2 6XH  ", "W1A 0AX"],
)
def test_valid_postcodes(postcode):
    assert is_valid_postcode(postcode) is True


@pytest.mark.parametrize(
    "postcode", ["not a postcode", "", None, "M1", "12345", "M1 1AAA", "1M 1AA"]
)
def test_invalid_postcodes(postcode):
    assert is_valid_postcode(postcode) is False


def test_email_validation():
    assert is_valid_email("a@b.com")
    assert is_valid_email("demo@charity.org")
    assert not is_valid_email("no-at-sign.com")
    assert not is_valid_email("a@b")
    assert not is_valid_email("a b@c.com")
    assert not is_valid_email("")
    assert not is_valid_email(None)


def test_phone_validation_ignores_whitespace():
    assert is_valid_phone("07700 900123")
    assert is_valid_phone("+44 7700 900123")
    assert is_valid_phone("0161 496 0000")
    assert not is_valid_phone("12345")
    assert not is_valid_phone(None)


def test_format_price():
    assert format_price(5) == "£5.00"
    assert format_price("12.5") == "£12.50"
    assert format_price(1234.5) == "£1,234.50"
    assert format_price(None) == "£0.00"
    assert format_price("abc") == "£0.00"


def test_format_date():
    assert format_date("2026-03-09T10:00:00Z") == "09/03/2026"
    assert format_date(datetime(2025, 12, 25)) == "25/12/2025"
    assert format_date(None) == "Unknown"
    assert format_date("yesterday-ish") == "Invalid date"


def test_format_item_code():
    assert format_item_code("gs-ab12cd") == "GS-AB12CD"
    assert format_item_code(None) == "Unknown"
    assert format_item_code("") == "Unknown"


def test_time_ago_buckets():
    now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert time_ago(now - timedelta(seconds=10), now=now) == "Just now"
    assert time_ago(now - timedelta(minutes=5), now=now) == "5 minutes ago"
    assert time_ago(now - timedelta(hours=3), now=now) == "3 hours ago"
    assert time_ago(now - timedelta(days=2), now=now) == "2 days ago"
    assert time_ago(now - timedelta(days=30), now=now) == "13/02/2026"
    assert time_ago(None) == "Unknown"
    assert time_ago("garbage") == "Unknown"


def test_format_price_out_of_float_range_is_zero():
    assert format_price(10**400) == "£0.00"
    assert format_price(-(10**400)) == "£0.00"


def test_time_ago_accepts_naive_now_as_utc():
    then = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert time_ago(then, now=datetime(2026, 1, 3)) == "2 days ago"
    assert time_ago("2026-01-01T00:00:00", now=datetime(2026, 1, 1, 0, 10)) == "10 minutes ago"
