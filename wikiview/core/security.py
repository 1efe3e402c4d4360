#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
Security utilities
==================
- JWT access token creation / verification (python-jose)
- FastAPI dependency for the optional current user of a page view

Page views are open to anonymous visitors, so the view routes only ever ask
for the *optional* user id; what that user may see is decided by
``wikiview.services.authority``.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .config import get_settings


# ----------------------------------------------------------------------------

_oauth2_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


# ----------------------------------------------------------------------------
# JWT tokens
# ----------------------------------------------------------------------------

def create_access_token(subject: str | int, extra: dict | None = None) -> str:
    s = get_settings()
    expire = datetime.now(tz=timezone.utc) + timedelta(minutes=s.access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
        "type": "access",
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, s.secret_key, algorithm=s.algorithm)


# ----------------------------------------------------------------------------

def decode_token(token: str) -> dict[str, Any]:
    s = get_settings()
    try:
        payload = jwt.decode(token, s.secret_key, algorithms=[s.algorithm])
    except JWTError:
        raise _credentials_error()
    if payload.get("sub") is None:
        raise _credentials_error()
    return payload


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


# ----------------------------------------------------------------------------
# FastAPI dependency: Bearer token or access_token cookie, both optional
# ----------------------------------------------------------------------------

async def get_optional_user_id(
    request: Request,
    token: str | None = Depends(_oauth2_optional),
) -> str | None:
    """Return the caller's user id, or None for anonymous visitors.

    A present-but-invalid Bearer token is an error (401); an invalid cookie
    is silently ignored so a stale browser session still sees the page.
    """
    if token:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise _credentials_error()
        return payload["sub"]

    cookie_token = request.cookies.get("access_token")
    if cookie_token:
        try:
            payload = decode_token(cookie_token)
        except HTTPException:
            return None
        if payload.get("type") == "access":
            return payload["sub"]
    return None


# ----------------------------------------------------------------------------
