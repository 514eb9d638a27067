"""Tests for the charity endpoints: registration, login/logout, dashboard."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from givespot.core.config import settings
from givespot.core.security import sign_session_value

API = "/api/v1/charities"


async def _login(client: AsyncClient, email: str, password: str):
    return await client.post(f"{API}/login", data={"username": email, "password": password})


@pytest.fixture
async def demo_charity(make_charity):
    return await make_charity(
        name="Demo Charity", email="demo@charity.org", postcode="M1 1AA", password="demo123"
    )


# ── Registration ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_register_creates_pending_application(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/register", json={
        "name": "Helping Hands",
        "email": "Team@HelpingHands.org",
        "postcode": "b33 8th",
        "contact_person": "Jo Bloggs",
        "registration_number": "1234567",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "pending"
    assert data["balance"] == 0
    assert data["email"] == "team@helpinghands.org"
    assert data["postcode"] == "B33 8TH"
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_register_missing_name_is_rejected(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/register", json={
        "name": "", "email": "a@b.com", "postcode": "M1 1AA", "contact_person": "X",
    })
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["field"] == "name"


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(async_client: AsyncClient, demo_charity):
    resp = await async_client.post(f"{API}/register", json={
        "name": "Copycat", "email": "DEMO@charity.org", "postcode": "M1 1AA", "contact_person": "X",
    })
    assert resp.status_code == 409
    assert "already exists" in resp.json()["detail"]


# ── Login / logout ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_sets_httponly_session_cookie(async_client: AsyncClient, demo_charity):
    resp = await _login(async_client, "demo@charity.org", "demo123")
    assert resp.status_code == 200
    body = resp.json()
    assert body["redirect"] == settings.DASHBOARD_URL
    assert body["charity"]["email"] == "demo@charity.org"
    assert "loginTimeUtc" in body["charity"]

    assert settings.SESSION_COOKIE_NAME in resp.cookies
    set_cookie = resp.headers.get("set-cookie")
    assert "HttpOnly" in set_cookie
    assert "SameSite=lax" in set_cookie


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_look_the_same(async_client: AsyncClient, demo_charity):
    wrong = await _login(async_client, "demo@charity.org", "wrongpass")
    unknown = await _login(async_client, "nobody@charity.org", "wrongpass")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["detail"] == unknown.json()["detail"] == "Invalid email or password"
    assert settings.SESSION_COOKIE_NAME not in wrong.cookies


@pytest.mark.asyncio
async def test_logout_clears_session(async_client: AsyncClient, demo_charity):
    await _login(async_client, "demo@charity.org", "demo123")
    assert (await async_client.get(f"{API}/me")).status_code == 200

    resp = await async_client.post(f"{API}/logout")
    assert resp.status_code == 200
    assert resp.json()["redirect"] == settings.LOGIN_URL

    assert (await async_client.get(f"{API}/me")).status_code == 401


@pytest.mark.asyncio
async def test_logout_without_session_still_succeeds(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/logout")
    assert resp.status_code == 200
    assert resp.json()["redirect"] == settings.LOGIN_URL


# ── Protected dashboard ─────────────────────────────────────────────
@pytest.mark.asyncio
async def test_dashboard_requires_login(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/me")
    assert resp.status_code == 401
    assert resp.json()["login_url"] == settings.LOGIN_URL


@pytest.mark.asyncio
async def test_dashboard_redirects_browsers_to_login(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/me", headers={"Accept": "text/html"})
    assert resp.status_code == 303
    assert resp.headers["location"] == settings.LOGIN_URL


@pytest.mark.asyncio
async def test_dashboard_shows_session_and_stats(async_client: AsyncClient, demo_charity, make_item):
    await make_item(demo_charity["id"], created_at=datetime.now(timezone.utc))
    await make_item(demo_charity["id"], status="sold")
    await _login(async_client, "demo@charity.org", "demo123")

    resp = await async_client.get(f"{API}/me")
    assert resp.status_code == 200
    data = resp.json()
    assert data["charity"]["id"] == demo_charity["id"]
    assert data["stats"]["total_items"] == 2
    assert data["stats"]["active_items"] == 1
    assert data["stats"]["sold_items"] == 1


@pytest.mark.asyncio
async def test_tampered_cookie_is_treated_as_logged_out(async_client: AsyncClient):
    async_client.cookies.set(settings.SESSION_COOKIE_NAME, "not-a-signed-session")
    resp = await async_client.get(f"{API}/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_cookie_is_rejected(async_client: AsyncClient, demo_charity):
    stale = json.dumps({
        "id": demo_charity["id"],
        "name": demo_charity["name"],
        "email": demo_charity["email"],
        "postcode": demo_charity["postcode"],
        "balance": 0,
        "loginTimeUtc": (datetime.now(timezone.utc) - timedelta(hours=25)).isoformat(),
    })
    async_client.cookies.set(settings.SESSION_COOKIE_NAME, sign_session_value(stale))

    resp = await async_client.get(f"{API}/me")
    assert resp.status_code == 401
    assert settings.SESSION_COOKIE_NAME in resp.headers.get("set-cookie", "")


# ── Profile & password ──────────────────────────────────────────────
@pytest.mark.asyncio
async def test_update_profile_refreshes_dashboard(async_client: AsyncClient, demo_charity):
    await _login(async_client, "demo@charity.org", "demo123")

    resp = await async_client.put(f"{API}/me", json={"name": "Renamed Charity", "phone": "07700 900123"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Renamed Charity"

    me = await async_client.get(f"{API}/me")
    assert me.json()["charity"]["name"] == "Renamed Charity"


@pytest.mark.asyncio
async def test_update_profile_rejects_bad_postcode(async_client: AsyncClient, demo_charity):
    await _login(async_client, "demo@charity.org", "demo123")
    resp = await async_client.put(f"{API}/me", json={"postcode": "nowhere"})
    assert resp.status_code == 422
    assert resp.json()["field"] == "postcode"


@pytest.mark.asyncio
async def test_change_password(async_client: AsyncClient, demo_charity):
    await _login(async_client, "demo@charity.org", "demo123")
    resp = await async_client.put(f"{API}/me/password", json={"password": "new-password"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    await async_client.post(f"{API}/logout")
    assert (await _login(async_client, "demo@charity.org", "demo123")).status_code == 401
    assert (await _login(async_client, "demo@charity.org", "new-password")).status_code == 200


# ── Item management ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_charity_lists_and_withdraws_items(async_client: AsyncClient, demo_charity):
    await _login(async_client, "demo@charity.org", "demo123")

    created = await async_client.post(f"{API}/me/items", json={"price": 7.5, "image_urls": ["a.jpg"]})
    assert created.status_code == 201
    item = created.json()
    assert item["status"] == "active"
    assert item["charity_id"] == demo_charity["id"]

    mine = await async_client.get(f"{API}/me/items")
    assert [i["id"] for i in mine.json()] == [item["id"]]

    removed = await async_client.delete(f"{API}/me/items/{item['id']}")
    assert removed.status_code == 200
    assert removed.json()["status"] == "removed"

    browse = await async_client.get("/api/v1/items")
    assert browse.json()["count"] == 0


@pytest.mark.asyncio
async def test_item_management_requires_login(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/me/items", json={"price": 7.5})
    assert resp.status_code == 401
