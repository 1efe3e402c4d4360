#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page service
============
Create pages and append revisions; look pages up for the view routes.

Every save appends a new Revision row; nothing is overwritten.  Saving
points the page at the new revision, bumps ``touched`` and recomputes the
redirect flag from the new content.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.models import Page, Revision
from wikiview.view.types import PageRef, RevisionFlags
from wikiview.view.urls import slugify, title_from_slug
from .namespaces import get_namespace_by_name
from .renderer import parse_redirect
from .revisions import page_ref


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

async def _find_page(db: AsyncSession, ns_id: str, slug: str) -> Optional[Page]:
    result = await db.execute(
        select(Page).where(Page.namespace_id == ns_id, Page.slug == slug)
    )
    return result.scalar_one_or_none()


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Writes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def create_page(
    db: AsyncSession,
    namespace_name: str,
    title: str,
    content: str,
    fmt: Optional[str] = None,
    author_id: Optional[str] = None,
    comment: str = "Initial version",
) -> tuple[Page, Revision]:
    ns = await get_namespace_by_name(db, namespace_name)
    slug = slugify(title)

    page = await _find_page(db, ns.id, slug)
    if page is not None and page.latest_rev_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Page '{title}' already exists in namespace '{namespace_name}'",
        )
    if page is None:
        # A deleted page keeps its row and is recreated in place
        page = Page(namespace_id=ns.id, title=title, slug=slug)
        db.add(page)
        await db.flush()

    revision = await save_revision(
        db, page, content, fmt or ns.default_format, author_id, comment,
    )
    return page, revision


async def save_revision(
    db: AsyncSession,
    page: Page,
    content: str,
    fmt: str = "markdown",
    author_id: Optional[str] = None,
    comment: str = "",
) -> Revision:
    revision = Revision(
        page_id=page.id,
        content=content,
        format=fmt,
        author_id=author_id,
        comment=comment,
    )
    db.add(revision)
    await db.flush()

    target = parse_redirect(content)
    page.latest_rev_id = revision.id
    page.touched = _utcnow()
    page.is_redirect = target is not None
    page.redirect_target = target
    await db.flush()
    log.debug("saved revision %s of page %s", revision.id, page.id)
    return revision


async def set_revision_visibility(db: AsyncSession, rev_id: int, flags: int) -> Revision:
    """Set the ``RevisionFlags`` bits of an old revision."""
    revision = await db.get(Revision, rev_id)
    if revision is None:
        raise HTTPException(status_code=404, detail=f"Revision {rev_id} not found")
    page = await db.get(Page, revision.page_id)
    if page.latest_rev_id == rev_id and flags & RevisionFlags.TEXT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The text of the current revision cannot be hidden",
        )
    revision.deleted = int(flags)
    page.touched = _utcnow()
    await db.flush()
    return revision


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Reads
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def get_page_ref(db: AsyncSession, namespace_name: str, slug: str) -> PageRef:
    """Snapshot of the page at *slug*; a title with no page row gets id 0."""
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _find_page(db, ns.id, slug)
    if page is None:
        return PageRef(id=0, namespace=ns.name, title=title_from_slug(slug), slug=slug)
    return page_ref(page, ns.name)


# -----------------------------------------------------------------------------
