"""
Key-value slots holding serialised sessions.

``CookieSessionStore`` is the production store: one signed, HttpOnly cookie
per key, bound to a single request/response pair. ``InMemorySessionStore``
backs scripts and tests.
"""

from __future__ import annotations

from typing import Protocol

from fastapi import Request, Response

from givespot.core.exceptions import StorageError
from givespot.core.security import sign_session_value, unsign_session_value

# Browsers drop cookies larger than this
MAX_COOKIE_BYTES = 4096


class SessionStore(Protocol):
    def get(self, key: str) -> str | None:
        """Return the stored value, ``None`` if absent.

        May raise ``ValueError`` when the slot holds something unreadable.
        """

    def set(self, key: str, value: str) -> None:
        """Write *value*; raise :class:`StorageError` on failure."""

    def delete(self, key: str) -> None:
        ...


class InMemorySessionStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class CookieSessionStore:
    def __init__(
        self,
        request: Request,
        response: Response,
        *,
        max_age: int,
        secure: bool = False,
    ) -> None:
        self._request = request
        self._response = response
        self._max_age = max_age
        self._secure = secure
        # Writes made during this request, so later reads see them
        self._pending: dict[str, str | None] = {}

    def get(self, key: str) -> str | None:
        if key in self._pending:
            return self._pending[key]
        token = self._request.cookies.get(key)
        if token is None:
            return None
        return unsign_session_value(token)

    def set(self, key: str, value: str) -> None:
        token = sign_session_value(value)
        if len(key) + len(token) > MAX_COOKIE_BYTES:
            raise StorageError("Session record too large to store")
        self._response.set_cookie(
            key=key,
            value=token,
            httponly=True,
            secure=self._secure,
            samesite="lax",
            max_age=self._max_age,
        )
        self._pending[key] = value

    def delete(self, key: str) -> None:
        self._response.delete_cookie(key)
        self._pending[key] = None
