#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render selector
===============
Chooses the output path for a resolved view.  First match wins:

1. a view-header hook claimed the view
2. the page does not exist
   (file cache, for anonymous views of the current revision)
3. a valid render-cache entry for the current revision
4. the revision's content may not be fetched
5. old revision: subtitle, deleted-revision gate, render cache for that id
6. fresh render

Render-cache lookups always come before anything that needs the revision's
content.  The selector only plans; rendering happens in the controller.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from wikiview.core.config import Settings, get_settings

from .context import CacheState, ViewContext
from .interfaces import FileCache, RenderCache, RevisionStore
from .policy import NOINDEX_NOFOLLOW
from .types import (
    FetchFailure,
    FetchOutcome,
    Missing,
    Notice,
    OutputPlan,
    PageRef,
    PlanKind,
    RenderedOutput,
    RenderOld,
    ResolvedView,
    RevisionFlags,
    RevisionRef,
)
from .urls import page_url
from .visibility import VisibilityGate


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def _requested_oldid(resolved: ResolvedView) -> int:
    if isinstance(resolved, RenderOld):
        return resolved.revision.id or 0
    if isinstance(resolved, Missing):
        return resolved.missing_rev_id or 0
    return 0


# -----------------------------------------------------------------------------

class RenderSelector:

    def __init__(
        self,
        store: RevisionStore,
        render_cache: RenderCache,
        gate: VisibilityGate,
        file_cache: Optional[FileCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.render_cache = render_cache
        self.gate = gate
        self.file_cache = file_cache
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------

    async def select_output(
        self,
        ctx: ViewContext,
        resolved: ResolvedView,
        cache: CacheState,
    ) -> OutputPlan:
        page = resolved.page

        if cache.hook.handled:
            plan = OutputPlan(PlanKind.HOOK_OUTPUT, page, output=cache.hook.output)
            if cache.hook.output is not None:
                plan.revision_id = cache.hook.output.revision_id
                plan.revision_timestamp = cache.hook.output.revision_timestamp
            return plan

        if not page.exists:
            log.debug("showing missing page %s", page.prefixed_title)
            return await self.missing_page_plan(ctx, resolved)

        oldid = _requested_oldid(resolved)

        if not oldid and cache.try_file_cache and self.file_cache is not None:
            plan = await self._try_file_cache(page)
            if plan is not None:
                return plan

        if cache.use_render_cache and not oldid:
            cached = await self.render_cache.get(page, None, ctx.options)
            if cached is not None:
                log.debug("serving %s from render cache", page.prefixed_title)
                return self._from_cache(page, cached)

        fetch = self.fetch(ctx, resolved)
        if not fetch.ok:
            return self.fetch_error_plan(page, fetch)

        revision = fetch.revision
        plan = OutputPlan(PlanKind.RENDER_FRESH, page, revision=revision)

        if oldid:
            plan.notices.append(self._old_subtitle(ctx, page, revision))
            decision = self.gate.display_for(revision, ctx.authority, ctx.request.unhide)
            notice = self.gate.display_notice(page, revision, decision)
            if notice is not None:
                plan.notices.append(notice)
            if not decision.allowed:
                log.debug("cannot view deleted revision %s", revision.id)
                plan.kind = PlanKind.SHOW_DELETED_REVISION
                plan.revision_id = revision.id
                return plan

            if cache.use_render_cache:
                cached = await self.render_cache.get(page, revision, ctx.options)
                if cached is not None:
                    return self._from_cache(page, cached, plan.notices)

        plan.revision_id = revision.id or page.latest_rev_id
        plan.revision_timestamp = revision.timestamp
        # Placeholder revisions have nothing to key a cache entry on, and
        # hidden text must never reach a shared cache
        plan.cache_write = (
            cache.use_render_cache
            and not revision.is_placeholder
            and not revision.is_deleted(RevisionFlags.TEXT)
        )
        return plan

    # ── Fetch ────────────────────────────────────────────────────────────

    def fetch(self, ctx: ViewContext, resolved: ResolvedView) -> FetchOutcome:
        if isinstance(resolved, Missing):
            if resolved.missing_rev_id:
                return FetchOutcome.fail(
                    FetchFailure.NOT_FOUND, "missing-revision", resolved.missing_rev_id,
                )
            return FetchOutcome.fail(FetchFailure.NOT_FOUND, "no-page-text")
        return self.gate.check_fetch(resolved.page, resolved.revision, ctx.authority)

    def fetch_error_plan(self, page: PageRef, fetch: FetchOutcome) -> OutputPlan:
        log.debug("fetch failed for %s: %s", page.prefixed_title, fetch.key)
        return OutputPlan(
            PlanKind.SHOW_FETCH_ERROR,
            page,
            status_code=403 if fetch.failure is FetchFailure.PERMISSION else 404,
            error_key=fetch.key,
            error_params=fetch.params,
            index_policy=NOINDEX_NOFOLLOW.index,
            follow_policy=NOINDEX_NOFOLLOW.follow,
            cdn_maxage=0,
            section_edit_links=False,
        )

    # ── Missing page ─────────────────────────────────────────────────────

    async def missing_page_plan(self, ctx: ViewContext, resolved: ResolvedView) -> OutputPlan:
        page = resolved.page
        authority = ctx.authority
        plan = OutputPlan(
            PlanKind.SHOW_MISSING_PAGE,
            page,
            index_policy=NOINDEX_NOFOLLOW.index,
            follow_policy=NOINDEX_NOFOLLOW.follow,
            section_edit_links=False,
        )
        if self.settings.send_404_code:
            plan.status_code = 404

        # Log lookups are not cheap; skip them for anonymous 404 floods
        if authority.is_registered:
            plan.log_entries = await self.store.recent_log_entries(page)
            if plan.log_entries:
                plan.add_notice("page-moved-or-deleted", level="info")

        oldid = _requested_oldid(resolved)
        if oldid:
            archived = await self.store.get_archived(oldid)
            if archived is not None and authority.can_view_deleted_text(archived):
                plan.error_key = "missing-revision-archived"
                plan.error_params = (oldid, archived.timestamp.isoformat(), page.prefixed_key)
            else:
                plan.error_key = "missing-revision"
                plan.error_params = (oldid,)
        elif authority.can("create", page) and authority.can("edit", page):
            plan.error_key = "no-page-text" if authority.is_registered else "no-page-text-anon"
        else:
            plan.error_key = "no-page-text-nopermission"
        return plan

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _try_file_cache(self, page: PageRef) -> Optional[OutputPlan]:
        if not await self.file_cache.is_cache_good(page):
            log.debug("file cache miss for %s", page.prefixed_title)
            return None
        html = await self.file_cache.load(page)
        if html is None:
            return None
        log.debug("done file cache for %s", page.prefixed_title)
        output = RenderedOutput(
            html=html,
            revision_id=page.latest_rev_id,
            revision_timestamp=page.touched,
            cache_time=datetime.now(tz=timezone.utc),
        )
        return OutputPlan(
            PlanKind.SERVE_FROM_FILE_CACHE,
            page,
            output=output,
            revision_id=page.latest_rev_id,
            revision_timestamp=page.touched,
        )

    def _from_cache(
        self,
        page: PageRef,
        cached: RenderedOutput,
        notices: Optional[list[Notice]] = None,
    ) -> OutputPlan:
        return OutputPlan(
            PlanKind.SERVE_FROM_CACHE,
            page,
            output=cached,
            revision_id=cached.revision_id or page.latest_rev_id,
            revision_timestamp=cached.revision_timestamp,
            notices=list(notices or []),
        )

    def _old_subtitle(self, ctx: ViewContext, page: PageRef, revision: RevisionRef) -> Notice:
        base = self.settings.base_url
        # Carry unhide through the navigation links
        unhide = 1 if ctx.request.unhide else None
        key = "current-revision" if revision.is_current else "old-revision"
        prev_url = page_url(page, base, oldid=revision.id, direction="prev", unhide=unhide)
        next_url = None
        if not revision.is_current:
            next_url = page_url(page, base, oldid=revision.id, direction="next", unhide=unhide)
        return Notice(
            key,
            (revision.timestamp.isoformat(), page_url(page, base), prev_url, next_url),
            level="subtitle",
        )


# -----------------------------------------------------------------------------
