# portal/core/security.py
"""
Password hashing and token signing.

  - Passwords: bcrypt, fixed work factor.
  - Access tokens and OAuth state: JWT signed with JWT_SECRET.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from portal.core.config import Settings

BCRYPT_ROUNDS = 10

# OAuth state lives only in the signed value itself
STATE_TTL = timedelta(minutes=10)


class InvalidTokenError(Exception):
    """Raised when a JWT is malformed, expired, or has the wrong purpose."""


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def _encode(settings: Settings, claims: dict[str, Any], ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def _decode(settings: Settings, token: str, purpose: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if payload.get("typ") != purpose:
        raise InvalidTokenError(f"expected a {purpose} token")
    return payload


def create_access_token(settings: Settings, user_id: uuid.UUID, role: str) -> str:
    """Sign an access token carrying the user's id (sub) and role."""
    return _encode(
        settings,
        {"sub": str(user_id), "role": role, "typ": "access"},
        timedelta(minutes=settings.JWT_EXPIRES_MINUTES),
    )


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    return _decode(settings, token, "access")


def create_oauth_state(settings: Settings) -> str:
    """
    Opaque CSRF value for the OAuth redirect.

    Self-contained and signed, so the callback can check it without any
    server-side storage.
    """
    return _encode(settings, {"nonce": uuid.uuid4().hex, "typ": "oauth_state"}, STATE_TTL)


def verify_oauth_state(settings: Settings, state: str) -> None:
    _decode(settings, state, "oauth_state")
