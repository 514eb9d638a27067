"""
GiveSpot — Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/`, `db/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from givespot.api.v1.api import api_router
from givespot.api.v1.endpoints.charities import limiter
from givespot.core.config import settings
from givespot.core.exceptions import register_exception_handlers
from givespot.core.security import get_password_hash
from givespot.db.base import Base
from givespot.db.data_service import DataService, Filter
from givespot.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from givespot.models.charity import Charity  # noqa: F401
from givespot.models.item import Item  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_demo_charity(data: DataService) -> None:
    """Create the active demo charity if it does not exist yet."""
    existing = await data.select(
        "charities", ["id"], [Filter.eq("email", settings.DEMO_CHARITY_EMAIL)], limit=1
    )
    if existing:
        return
    await data.insert(
        "charities",
        {
            "name": "GiveSpot Demo Charity",
            "email": settings.DEMO_CHARITY_EMAIL,
            "postcode": "M1 1AA",
            "contact_person": "Demo Contact",
            "status": "active",
            "balance": 0,
            "password_hash": get_password_hash(settings.DEMO_CHARITY_PASSWORD),
        },
    )
    logger.info(
        "Demo charity created: %s (password: <redacted>)", settings.DEMO_CHARITY_EMAIL
    )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    if settings.SEED_DEMO_CHARITY:
        async with async_session_factory() as session:
            await seed_demo_charity(DataService(session))

    logger.info("GiveSpot v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Marketplace connecting charities and shoppers",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Login rate limiting
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
