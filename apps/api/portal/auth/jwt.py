from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from jwt import PyJWTError

from portal.auth.principal import Principal, Role
from portal.core.config import settings
from portal.services.exceptions import UnauthenticatedError


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session_token(
    user_id: uuid.UUID | str,
    email: str | None,
    role: Role | None,
    ttl_seconds: int | None = None,
) -> str:
    now = _now()
    exp = now + timedelta(seconds=ttl_seconds or settings.session_token_ttl_seconds)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    if role is not None:
        payload["role"] = role.to_claim()
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_session_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except PyJWTError as exc:
        raise UnauthenticatedError("invalid or expired token") from exc


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise UnauthenticatedError("token has no subject")

    email = claims.get("email")
    if not email:
        metadata = claims.get("user_metadata")
        if isinstance(metadata, dict):
            email = metadata.get("email")

    return Principal(
        id=subject,
        email=email if isinstance(email, str) and email else None,
        role=Role.parse(claims.get("role")),
        claims=claims,
    )
