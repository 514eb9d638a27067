"""
FastAPI dependencies — database session, data service and charity sessions.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from givespot.core.config import settings
from givespot.db.data_service import DataService
from givespot.db.session import async_session_factory
from givespot.schemas.charity import CharitySession
from givespot.services.charity_sessions import CharitySessionManager
from givespot.services.session_store import CookieSessionStore


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_data_service(db: AsyncSession = Depends(get_db)) -> DataService:
    return DataService(db)


# ── Charity sessions ────────────────────────────────────────────────
def get_session_store(request: Request, response: Response) -> CookieSessionStore:
    """Session slot backed by the request's signed cookie."""
    return CookieSessionStore(
        request,
        response,
        max_age=settings.SESSION_EXPIRE_HOURS * 60 * 60,
        secure=settings.COOKIE_SECURE,
    )


def get_session_manager(
    store: CookieSessionStore = Depends(get_session_store),
    data: DataService = Depends(get_data_service),
) -> CharitySessionManager:
    return CharitySessionManager(store, data)


def get_current_charity(
    manager: CharitySessionManager = Depends(get_session_manager),
) -> CharitySession:
    """Gate for protected pages; raises ``LoginRequired`` without a live session."""
    return manager.require_session()
