"""
Charity session manager — login, logout, registration and the protected-page
gate.

A session is a snapshot of the charity's identity plus the time it logged in,
kept in a single slot of a :class:`SessionStore`. Reads never go back to the
database: a present, unexpired session is trusted as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from givespot.core.config import settings
from givespot.core.exceptions import (AccountNotFound, DuplicateEmail,
                                      InvalidCredentials, LoginRequired,
                                      NotFound, RetrievalError, StorageError,
                                      ValidationError)
from givespot.core.security import get_password_hash, verify_password
from givespot.core.validators import (is_valid_email, is_valid_phone,
                                      is_valid_postcode)
from givespot.db.data_service import (UNIQUE_VIOLATION, DataService,
                                      DataServiceError, Filter)
from givespot.schemas.charity import (CharityApplication, CharitySession,
                                      CharityStats, CharityUpdate)
from givespot.services.session_store import SessionStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "postcode", "contact_person")
MIN_PASSWORD_LENGTH = 6

# Column sizes on the charities table
MAX_LENGTHS = {
    "name": 200,
    "email": 320,
    "postcode": 10,
    "address": 500,
    "phone": 30,
    "contact_person": 200,
    "contact_position": 100,
    "registration_number": 50,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_lengths(values: Mapping[str, Any]) -> None:
    for field, limit in MAX_LENGTHS.items():
        value = values.get(field)
        if value is not None and len(value) > limit:
            raise ValidationError(
                f"{field.replace('_', ' ')} must be at most {limit} characters",
                field=field,
            )


def _public(record: dict[str, Any]) -> dict[str, Any]:
    record.pop("password_hash", None)
    return record


class CharitySessionManager:
    def __init__(
        self,
        store: SessionStore,
        data: DataService,
        *,
        clock: Callable[[], datetime] = _utcnow,
        expire_after: timedelta = timedelta(hours=settings.SESSION_EXPIRE_HOURS),
        login_url: str = settings.LOGIN_URL,
        key: str = settings.SESSION_COOKIE_NAME,
    ) -> None:
        self._store = store
        self._data = data
        self._clock = clock
        self._expire_after = expire_after
        self._login_url = login_url
        self._key = key

    @property
    def login_url(self) -> str:
        return self._login_url

    # ── Session slot ────────────────────────────────────────────────
    def _write(self, session: CharitySession) -> None:
        self._store.set(self._key, session.model_dump_json(by_alias=True))

    def _clear(self) -> None:
        try:
            self._store.delete(self._key)
        except Exception as exc:  # noqa: BLE001
            logger.error("Could not clear charity session: %s", exc)

    def create_session(self, charity: Mapping[str, Any]) -> CharitySession:
        """Store a fresh session for *charity*, replacing any previous one."""
        session = CharitySession(
            id=charity["id"],
            name=charity["name"],
            email=charity["email"],
            postcode=charity["postcode"],
            balance=charity.get("balance") or 0,
            login_time_utc=self._clock(),
        )
        self._write(session)
        return session

    def current_session(self) -> CharitySession | None:
        """Return the live session, healing corrupt or expired slots to empty."""
        try:
            raw = self._store.get(self._key)
            if raw is None:
                return None
            session = CharitySession.model_validate_json(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable charity session: %s", exc)
            self._clear()
            return None

        if self._clock() - _as_utc(session.login_time_utc) > self._expire_after:
            logger.info("Charity session for %s expired", session.email)
            self._clear()
            return None
        return session

    def require_session(self) -> CharitySession:
        session = self.current_session()
        if session is None:
            raise LoginRequired(self._login_url)
        return session

    def destroy_session(self) -> str:
        """Clear the slot and return the URL the client should navigate to."""
        self._clear()
        return self._login_url

    # ── Authentication ──────────────────────────────────────────────
    async def authenticate(self, email: str, password: str) -> CharitySession:
        normalised = (email or "").strip().lower()
        if not normalised or not password:
            raise ValidationError("Email and password are required")

        try:
            rows = await self._data.select(
                "charities",
                filters=[Filter.eq("email", normalised), Filter.eq("status", "active")],
                limit=1,
            )
        except DataServiceError as exc:
            raise RetrievalError(f"Login failed: {exc.message}") from exc

        if not rows:
            logger.info("Login rejected for %s: no active charity", normalised)
            raise AccountNotFound()

        charity = rows[0]
        stored_hash = charity.get("password_hash")
        if not stored_hash or not verify_password(password, stored_hash):
            logger.info("Login rejected for %s: bad credentials", normalised)
            raise InvalidCredentials()

        session = self.create_session(charity)
        logger.info("Charity %s logged in", normalised)
        return session

    # ── Registration & profile ──────────────────────────────────────
    async def register(
        self, application: CharityApplication | Mapping[str, Any]
    ) -> dict[str, Any]:
        """Validate and store a new charity application (status ``pending``)."""
        if not isinstance(application, CharityApplication):
            application = CharityApplication.model_validate(application)

        for field in REQUIRED_FIELDS:
            if not _clean(getattr(application, field)):
                raise ValidationError(f"{field.replace('_', ' ')} is required", field=field)

        email = application.email.strip().lower()  # type: ignore[union-attr]
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email address", field="email")
        if not is_valid_postcode(application.postcode):
            raise ValidationError("Please enter a valid UK postcode", field="postcode")
        phone = _clean(application.phone)
        if phone is not None and not is_valid_phone(phone):
            raise ValidationError("Please enter a valid UK phone number", field="phone")

        password_hash = None
        if application.password:
            if len(application.password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                    field="password",
                )
            password_hash = get_password_hash(application.password)

        try:
            existing = await self._data.select(
                "charities", ["id"], [Filter.eq("email", email)], limit=1
            )
        except DataServiceError as exc:
            raise RetrievalError(f"Failed to submit application: {exc.message}") from exc
        if existing:
            raise DuplicateEmail()

        record = {
            "name": application.name.strip(),  # type: ignore[union-attr]
            "email": email,
            "registration_number": _clean(application.registration_number),
            "postcode": application.postcode.strip().upper(),  # type: ignore[union-attr]
            "address": _clean(application.address),
            "phone": phone,
            "contact_person": application.contact_person.strip(),  # type: ignore[union-attr]
            "contact_position": _clean(application.contact_position),
            "status": "pending",
            "balance": 0,
            "password_hash": password_hash,
        }
        _check_lengths(record)
        try:
            created = await self._data.insert("charities", record)
        except DataServiceError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateEmail() from exc
            raise StorageError(f"Failed to submit application: {exc.message}") from exc

        logger.info("Charity application received from %s", email)
        return _public(created)

    async def update_profile(
        self, charity_id: int, patch: CharityUpdate | Mapping[str, Any]
    ) -> dict[str, Any]:
        if not isinstance(patch, CharityUpdate):
            patch = CharityUpdate.model_validate(patch)

        changes: dict[str, Any] = {}
        for field, value in patch.model_dump(exclude_unset=True).items():
            value = _clean(value)
            if value is None and field in REQUIRED_FIELDS:
                raise ValidationError(f"{field.replace('_', ' ')} is required", field=field)
            changes[field] = value

        if "postcode" in changes:
            if not is_valid_postcode(changes["postcode"]):
                raise ValidationError("Please enter a valid UK postcode", field="postcode")
            changes["postcode"] = changes["postcode"].upper()
        if changes.get("phone") is not None and not is_valid_phone(changes["phone"]):
            raise ValidationError("Please enter a valid UK phone number", field="phone")
        if not changes:
            raise ValidationError("No profile changes supplied")
        _check_lengths(changes)

        try:
            updated = await self._data.update(
                "charities", changes, [Filter.eq("id", charity_id)]
            )
        except DataServiceError as exc:
            raise StorageError(f"Failed to update profile: {exc.message}") from exc
        if updated is None:
            raise NotFound("Charity not found")

        # Keep the stored snapshot in step, without extending the login
        current = self.current_session()
        if current is not None and current.id == charity_id:
            self._write(
                current.model_copy(
                    update={
                        "name": updated["name"],
                        "email": updated["email"],
                        "postcode": updated["postcode"],
                        "balance": updated["balance"] or 0,
                    }
                )
            )
        return _public(updated)

    async def get_stats(self, charity_id: int) -> CharityStats:
        """Item counts for the dashboard; zeros when the backend fails."""
        try:
            items = await self._data.select(
                "items",
                ["id", "status", "created_at"],
                [Filter.eq("charity_id", charity_id)],
            )
        except DataServiceError as exc:
            logger.error("Error getting charity stats for %s: %s", charity_id, exc.message)
            return CharityStats()

        month_start = self._clock().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return CharityStats(
            total_items=len(items),
            active_items=sum(1 for i in items if i["status"] == "active"),
            sold_items=sum(1 for i in items if i["status"] == "sold"),
            this_month_items=sum(
                1
                for i in items
                if i["created_at"] is not None and _as_utc(i["created_at"]) >= month_start
            ),
        )

    async def setup_password(self, charity_id: int, password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                field="password",
            )
        try:
            updated = await self._data.update(
                "charities",
                {"password_hash": get_password_hash(password)},
                [Filter.eq("id", charity_id)],
            )
        except DataServiceError as exc:
            raise StorageError(f"Failed to set password: {exc.message}") from exc
        if updated is None:
            raise NotFound("Charity not found")
        logger.info("Password updated for charity %s", charity_id)
