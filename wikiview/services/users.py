#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User service — create and look up user accounts.

Accounts are provisioned out of band (seed scripts, tests); page views only
need to turn a token's subject back into a ``User``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.models import User


# -----------------------------------------------------------------------------

async def create_user(
    db: AsyncSession,
    username: str,
    display_name: str | None = None,
    is_admin: bool = False,
    can_suppress: bool = False,
) -> User:
    existing = await db.execute(select(User).where(User.username == username))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user = User(
        username=username,
        display_name=display_name or username,
        is_admin=is_admin,
        can_suppress=can_suppress,
    )
    db.add(user)
    await db.flush()
    return user


# -----------------------------------------------------------------------------

async def get_user_by_id_or_none(db: AsyncSession, user_id: str | None) -> User | None:
    if not user_id:
        return None
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


# -----------------------------------------------------------------------------
