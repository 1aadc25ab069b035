# sitebuilder/core/security.py
"""
Caller identity.

Tokens are issued by the identity provider and signed with the shared
``JWT_SECRET``. This service only verifies them and reads ``sub``, which is
the user's id. ``create_access_token`` mints the same shape for tests and
local tooling.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from sitebuilder.core.config import settings

bearer_scheme = HTTPBearer(auto_error=True)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user_id: uuid.UUID | str, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user_id), "iat": int(now.timestamp()), "exp": int(expires.timestamp())}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_user_id(token: str) -> uuid.UUID:
    """User id from a verified token. Anything else is a 401."""
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        raise _unauthorized("Invalid token")

    try:
        return uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        raise _unauthorized("Invalid token subject")
