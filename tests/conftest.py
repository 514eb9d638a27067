"""
Shared test fixtures for the GiveSpot test suite.

Async throughout (aiosqlite + AsyncSession), one in-memory database per test.
"""

import itertools
import os
import sys
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from givespot.api.v1.deps import get_db
from givespot.core.security import get_password_hash
from givespot.db.base import Base
from givespot.db.data_service import DataService
from givespot.main import app


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def data(db_session: AsyncSession) -> DataService:
    return DataService(db_session)


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app and the test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Record factories ────────────────────────────────────────────────
_seq = itertools.count(1)


@pytest.fixture
def make_charity(data: DataService):
    async def _make(**overrides):
        n = next(_seq)
        record = {
            "name": f"Charity {n}",
            "email": f"charity{n}@example.org",
            "postcode": "M1 1AA",
            "address": f"{n} High Street",
            "contact_person": "Pat Smith",
            "status": "active",
            "balance": 0,
        }
        password = overrides.pop("password", None)
        record.update(overrides)
        if password is not None:
            record["password_hash"] = get_password_hash(password)
        return await data.insert("charities", record)

    return _make


@pytest.fixture
def make_item(data: DataService):
    async def _make(charity_id: int, price: float = 5.0, **overrides):
        n = next(_seq)
        record = {
            "item_code": f"gs-{n:06d}",
            "price": price,
            "image_urls": [f"https://img.example.org/{n}.jpg"],
            "status": "active",
            "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "charity_id": charity_id,
        }
        record.update(overrides)
        return await data.insert("items", record)

    return _make
