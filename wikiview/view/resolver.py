#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Revision resolver
=================
Maps (page, oldid, direction) onto the revision to show.

- A page with no current revision is Missing, whatever else was asked.
- ``oldid`` of another page switches the target to that page.
- ``direction=next`` always ends in a redirect: to the successor's URL, or
  back to the plain page (``redirect=no``) when there is no successor.
- ``direction=prev`` redirects to the predecessor's URL; with no predecessor
  the direction is dropped and the request resolves as if it were absent.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional, Union

from .interfaces import RevisionStore
from .types import (
    Direction,
    Missing,
    PageRef,
    RedirectInstruction,
    RenderCurrent,
    RenderOld,
    ResolvedView,
    RevisionRef,
)
from .urls import page_url


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class RevisionResolver:

    def __init__(self, store: RevisionStore, base_url: str = "") -> None:
        self.store = store
        self.base_url = base_url

    # -------------------------------------------------------------------------

    async def resolve(
        self,
        page: PageRef,
        explicit_rev_id: int = 0,
        direction: Direction = Direction.NONE,
    ) -> Union[ResolvedView, RedirectInstruction]:
        current = await self.store.get_current(page) if page.exists else None
        if current is None:
            log.debug("no current revision for %s", page.prefixed_title)
            return Missing(page, explicit_rev_id or None)

        revision: Optional[RevisionRef] = current
        if explicit_rev_id:
            page, revision = await self._lookup(page, current, explicit_rev_id)

        if direction is Direction.NEXT:
            return await self._navigate_next(page, revision if explicit_rev_id else None)
        if direction is Direction.PREV and explicit_rev_id and revision is not None:
            previous = await self.store.get_previous(revision)
            if previous is not None:
                return RedirectInstruction(
                    page, page_url(page, self.base_url, oldid=previous.id), "prev",
                )

        if revision is None:
            return Missing(page, explicit_rev_id)
        if explicit_rev_id:
            return RenderOld(page, revision)
        return RenderCurrent(page, current)

    # -------------------------------------------------------------------------

    async def _lookup(
        self,
        page: PageRef,
        current: RevisionRef,
        rev_id: int,
    ) -> tuple[PageRef, Optional[RevisionRef]]:
        if rev_id == page.latest_rev_id:
            return page, current

        revision = await self.store.get_by_id(rev_id)
        if revision is None:
            log.debug("failed to load revision, rev_id %s", rev_id)
            return page, None

        if revision.page_id != page.id:
            owner = await self.store.get_page_by_id(revision.page_id)
            if owner is not None:
                log.debug(
                    "revision %s belongs to %s, not %s",
                    rev_id, owner.prefixed_title, page.prefixed_title,
                )
                page = owner
        return page, revision

    async def _navigate_next(
        self,
        page: PageRef,
        revision: Optional[RevisionRef],
    ) -> RedirectInstruction:
        following = await self.store.get_next(revision) if revision is not None else None
        if following is not None:
            return RedirectInstruction(
                page, page_url(page, self.base_url, oldid=following.id), "next",
            )
        return RedirectInstruction(page, page_url(page, self.base_url, redirect="no"), "no-next")


# -----------------------------------------------------------------------------
