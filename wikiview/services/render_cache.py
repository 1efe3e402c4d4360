#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render cache
============
Rendered HTML in the ``render_cache`` table, keyed by
(page id, revision id, options key).  The options key carries the renderer
version, so a pipeline change quietly orphans old entries.

An entry is valid while it is newer than the page's ``touched`` time and
younger than ``render_cache_expiry_seconds``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.core.config import Settings, get_settings
from wikiview.models import RenderCacheEntry
from wikiview.view.interfaces import RenderCache
from wikiview.view.types import PageRef, RenderedOutput, RenderOptions, RevisionRef
from .renderer import RENDERER_VERSION
from .revisions import as_utc


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def options_key(options: RenderOptions) -> str:
    return f"{options.cache_key()}!rv={RENDERER_VERSION}"


def _to_output(entry: RenderCacheEntry, stale: bool = False) -> RenderedOutput:
    return RenderedOutput(
        html=entry.html,
        revision_id=entry.rev_id,
        revision_timestamp=as_utc(entry.rev_timestamp),
        cache_time=as_utc(entry.cached_at),
        display_title=entry.display_title,
        index_policy=entry.index_policy,
        stale=stale,
    )


# -----------------------------------------------------------------------------

class SqlRenderCache(RenderCache):

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    async def _entry(self, page_id: int, rev_id: int, key: str) -> Optional[RenderCacheEntry]:
        result = await self.db.execute(
            select(RenderCacheEntry).where(
                RenderCacheEntry.page_id == page_id,
                RenderCacheEntry.rev_id == rev_id,
                RenderCacheEntry.options_key == key,
            )
        )
        return result.scalar_one_or_none()

    def _is_valid(self, page: PageRef, entry: RenderCacheEntry) -> bool:
        cached_at = as_utc(entry.cached_at)
        if page.touched is not None and cached_at < page.touched:
            return False
        expiry = timedelta(seconds=self.settings.render_cache_expiry_seconds)
        return cached_at > datetime.now(tz=timezone.utc) - expiry

    # -------------------------------------------------------------------------

    async def get(
        self,
        page: PageRef,
        revision: Optional[RevisionRef],
        options: RenderOptions,
    ) -> Optional[RenderedOutput]:
        rev_id = revision.id if revision is not None else page.latest_rev_id
        if not page.id or not rev_id:
            return None
        entry = await self._entry(page.id, rev_id, options_key(options))
        if entry is None:
            return None
        if not self._is_valid(page, entry):
            log.debug("render cache entry for %s rev %s has expired", page.prefixed_title, rev_id)
            return None
        return _to_output(entry)

    async def get_stale(self, page: PageRef, options: RenderOptions) -> Optional[RenderedOutput]:
        """Newest entry for the current revision, however old."""
        if not page.id or not page.latest_rev_id:
            return None
        result = await self.db.execute(
            select(RenderCacheEntry)
            .where(
                RenderCacheEntry.page_id == page.id,
                RenderCacheEntry.rev_id == page.latest_rev_id,
                RenderCacheEntry.options_key == options_key(options),
            )
            .order_by(RenderCacheEntry.cached_at.desc())
            .limit(1)
        )
        entry = result.scalar_one_or_none()
        return _to_output(entry, stale=True) if entry is not None else None

    async def put(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
        output: RenderedOutput,
    ) -> None:
        key = options_key(options)
        entry = await self._entry(page.id, revision.id, key)
        if entry is None:
            entry = RenderCacheEntry(page_id=page.id, rev_id=revision.id, options_key=key)
            self.db.add(entry)
        entry.html = output.html
        entry.rev_timestamp = output.revision_timestamp
        entry.display_title = output.display_title
        entry.index_policy = output.index_policy
        entry.cached_at = output.cache_time
        await self.db.flush()
        log.debug("saved render cache for %s rev %s", page.prefixed_title, revision.id)


# -----------------------------------------------------------------------------
