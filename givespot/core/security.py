"""
Password hashing (bcrypt) and signing of the charity session cookie (JWS).
"""

from __future__ import annotations

from jose import JWSError, jws
from passlib.context import CryptContext

from givespot.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALGORITHM = settings.SESSION_ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Not a hash passlib recognises (e.g. a legacy plaintext value)
        return False


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── Session signing ─────────────────────────────────────────────────
def sign_session_value(value: str) -> str:
    return jws.sign(value.encode("utf-8"), _SECRET, algorithm=_ALGORITHM)


def unsign_session_value(token: str) -> str:
    """Return the signed payload; raise ``ValueError`` when tampered or malformed."""
    try:
        return jws.verify(token, _SECRET, algorithms=[_ALGORITHM]).decode("utf-8")
    except (JWSError, UnicodeDecodeError) as exc:
        raise ValueError(f"Invalid session signature: {exc}") from exc
