"""
Health endpoint — database connectivity.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from givespot.api.v1.deps import get_data_service
from givespot.core.config import settings
from givespot.db.data_service import DataService
from givespot.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(data: DataService = Depends(get_data_service)) -> HealthResponse:
    """Public health check."""
    db_ok = await data.ping()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db=db_ok,
        version=settings.VERSION,
    )
