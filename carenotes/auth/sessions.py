"""Signed session tokens issued after sign-in with the external identity provider."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from carenotes.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class InvalidSessionError(Exception):
    """The presented session token cannot be trusted."""


class AuthSession(BaseModel):
    """Identity claims carried by a session token."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    role: str = Field(min_length=1)
    organization_id: str | None = None
    email: str | None = None
    name: str | None = None
    expires_at: datetime | None = None


def issue_session_token(session: AuthSession, expires_in: timedelta | None = None) -> str:
    """Sign a session token for ``session``."""

    now = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else timedelta(
        seconds=settings.session_max_age_seconds
    )
    payload = {
        "sub": session.user_id,
        "role": session.role,
        "org": session.organization_id,
        "email": session.email,
        "name": session.name,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.auth_secret, algorithm=ALGORITHM)


def decode_session_token(token: str) -> AuthSession:
    """Verify ``token`` and return its claims.

    Raises:
        InvalidSessionError: bad signature, expired, malformed or incomplete.
    """

    try:
        claims = jwt.decode(
            token,
            settings.auth_secret,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidSessionError(str(exc)) from exc

    try:
        return AuthSession(
            user_id=claims["sub"],
            role=claims.get("role") or "",
            organization_id=claims.get("org"),
            email=claims.get("email"),
            name=claims.get("name"),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except ValidationError as exc:
        raise InvalidSessionError("session claims are incomplete") from exc


def extract_session_token(request: Request) -> str | None:
    """Return the bearer token, falling back to the session cookie."""

    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name) or None


def lookup_session(request: Request) -> AuthSession | None:
    """Return the caller's session, or ``None`` when there is no usable one."""

    token = extract_session_token(request)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except InvalidSessionError as exc:
        logger.info("session token rejected", extra={"reason": str(exc)})
        return None


__all__ = [
    "AuthSession",
    "InvalidSessionError",
    "decode_session_token",
    "extract_session_token",
    "issue_session_token",
    "lookup_session",
]
