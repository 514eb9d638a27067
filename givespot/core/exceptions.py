"""
Domain error taxonomy and global exception handlers.

Every GiveSpot operation fails with one of the errors below; the handlers
turn them into ``{"detail": ..., "success": False}`` bodies and prevent
stack-trace leakage to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from givespot.core.config import settings

logger = logging.getLogger(__name__)

GENERIC_AUTH_MESSAGE = "Invalid email or password"


class GiveSpotError(Exception):
    """Base class for recoverable, user-facing failures."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GiveSpotError):
    """Bad input shape. ``field`` names the offending input when known."""

    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthenticationError(GiveSpotError):
    status_code = 401

    def __init__(self, message: str = GENERIC_AUTH_MESSAGE) -> None:
        super().__init__(message)


class AccountNotFound(AuthenticationError):
    """No active charity with that email."""


class InvalidCredentials(AuthenticationError):
    """Password missing or does not match."""


class NotFound(GiveSpotError):
    status_code = 404


class DuplicateEmail(GiveSpotError):
    status_code = 409

    def __init__(self, message: str = "A charity with this email address already exists") -> None:
        super().__init__(message)


class RetrievalError(GiveSpotError):
    """Backend read failed; ``message`` carries the backend's message."""

    status_code = 503


class StorageError(GiveSpotError):
    """Session store write failed."""

    status_code = 500


class LoginRequired(GiveSpotError):
    status_code = 401

    def __init__(self, login_url: str, message: str = "Please log in to continue") -> None:
        super().__init__(message)
        self.login_url = login_url


# ── Handlers ────────────────────────────────────────────────────────
def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


async def _login_required_handler(request: Request, exc: LoginRequired):
    if _wants_html(request):
        response = RedirectResponse(url=exc.login_url, status_code=303)
    else:
        response = JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "login_url": exc.login_url, "success": False},
        )
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


async def _givespot_error_handler(_request: Request, exc: GiveSpotError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    content: dict = {"detail": exc.message, "success": False}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(LoginRequired, _login_required_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GiveSpotError, _givespot_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
