"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from givespot.api.v1.endpoints import charities, health, items

api_router = APIRouter()

# Public browse & search
api_router.include_router(items.router)

# Registration, login/logout, dashboard
api_router.include_router(charities.router)

api_router.include_router(health.router)
