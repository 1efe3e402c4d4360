#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Namespace service — create and look up wiki namespaces.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.models import Namespace


# -----------------------------------------------------------------------------

async def create_namespace(
    db: AsyncSession,
    name: str,
    description: str = "",
    default_format: str = "markdown",
) -> Namespace:
    existing = await db.execute(select(Namespace).where(Namespace.name == name))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Namespace '{name}' already exists",
        )

    ns = Namespace(name=name, description=description, default_format=default_format)
    db.add(ns)
    await db.flush()
    return ns


async def ensure_namespace(db: AsyncSession, name: str, description: str = "") -> Namespace:
    """Return the namespace, creating it first if needed (used at startup)."""
    ns = await get_namespace_by_name_or_none(db, name)
    if ns is None:
        ns = await create_namespace(db, name, description)
    return ns


# -----------------------------------------------------------------------------

async def get_namespace_by_name(db: AsyncSession, name: str) -> Namespace:
    ns = await get_namespace_by_name_or_none(db, name)
    if not ns:
        raise HTTPException(status_code=404, detail=f"Namespace '{name}' not found")
    return ns


async def get_namespace_by_name_or_none(db: AsyncSession, name: str) -> Optional[Namespace]:
    result = await db.execute(select(Namespace).where(Namespace.name == name))
    return result.scalar_one_or_none()


# -----------------------------------------------------------------------------
