"""
Charity endpoints — registration, login/logout and the protected dashboard.

- POST /register, /login, /logout are public (login is rate-limited).
- Everything under /me requires a live charity session cookie.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address

from givespot.api.v1.deps import (get_current_charity, get_data_service,
                                  get_session_manager)
from givespot.core.config import settings
from givespot.db.data_service import DataService
from givespot.schemas.charity import (CharityApplication, CharityRead,
                                      CharitySession, CharityUpdate,
                                      DashboardResponse, LoginResponse,
                                      LogoutResponse, PasswordSetup)
from givespot.schemas.common import MessageResponse
from givespot.schemas.item import ItemCreate, ItemRead
from givespot.services.charity_sessions import CharitySessionManager
from givespot.services.listings import (create_item, list_charity_items,
                                        remove_item)

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/charities", tags=["charities"])


@router.post("/register", response_model=CharityRead, status_code=201)
async def register_charity(
    body: CharityApplication,
    manager: CharitySessionManager = Depends(get_session_manager),
) -> dict:
    """Submit a charity application. New charities start as ``pending``."""
    return await manager.register(body)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    manager: CharitySessionManager = Depends(get_session_manager),
) -> LoginResponse:
    """Authenticate with email (``username`` field) and password.

    Sets the HttpOnly session cookie on success.
    """
    session = await manager.authenticate(form_data.username, form_data.password)
    return LoginResponse(
        message="Login successful! Redirecting...",
        redirect=settings.DASHBOARD_URL,
        charity=session,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    manager: CharitySessionManager = Depends(get_session_manager),
) -> LogoutResponse:
    """Clear the session cookie and send the client back to login."""
    return LogoutResponse(message="Logged out", redirect=manager.destroy_session())


# ── Dashboard (session required) ────────────────────────────────────
@router.get("/me", response_model=DashboardResponse)
async def dashboard(
    charity: CharitySession = Depends(get_current_charity),
    manager: CharitySessionManager = Depends(get_session_manager),
) -> DashboardResponse:
    stats = await manager.get_stats(charity.id)
    return DashboardResponse(charity=charity, stats=stats)


@router.put("/me", response_model=CharityRead)
async def update_profile(
    body: CharityUpdate,
    charity: CharitySession = Depends(get_current_charity),
    manager: CharitySessionManager = Depends(get_session_manager),
) -> dict:
    return await manager.update_profile(charity.id, body)


@router.put("/me/password", response_model=MessageResponse)
async def change_password(
    body: PasswordSetup,
    charity: CharitySession = Depends(get_current_charity),
    manager: CharitySessionManager = Depends(get_session_manager),
) -> MessageResponse:
    await manager.setup_password(charity.id, body.password)
    return MessageResponse(message="Password updated")


@router.get("/me/items", response_model=list[ItemRead])
async def my_items(
    charity: CharitySession = Depends(get_current_charity),
    data: DataService = Depends(get_data_service),
) -> list[ItemRead]:
    return await list_charity_items(data, charity.id)


@router.post("/me/items", response_model=ItemRead, status_code=201)
async def add_item(
    body: ItemCreate,
    charity: CharitySession = Depends(get_current_charity),
    data: DataService = Depends(get_data_service),
) -> ItemRead:
    return await create_item(data, charity.id, body)


@router.delete("/me/items/{item_id}", response_model=ItemRead)
async def withdraw_item(
    item_id: int,
    charity: CharitySession = Depends(get_current_charity),
    data: DataService = Depends(get_data_service),
) -> ItemRead:
    """Mark one of the charity's active items as removed."""
    return await remove_item(data, charity.id, item_id)
