#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page view controller
====================
Entry points for one request each:

    view()            normal page view (current or old revision)
    show_diff_page()  diff between two revisions, with the newer one below
    render()          body-only view for the render action
    delete()          confirmation form / page deletion

A view runs: resolve revision -> read check -> redirect shortcut ->
(diff branch | select output -> emit).  Every ``ViewError`` raised on the way
is turned into an error plan here, so callers always get an ``OutputPlan``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Optional

from wikiview.core.config import Settings, get_settings
from wikiview.core.errors import NotFound, PermissionDenied, RenderFailed, ViewError

from .context import CacheState, ViewContext
from .hooks import ViewHeaderHandler, run_view_header_hooks
from .interfaces import Authority, DiffEngine, FileCache, RenderCache, Renderer, RevisionStore
from .messages import format_message
from .policy import NOINDEX_NOFOLLOW, get_robot_policy
from .resolver import RevisionResolver
from .selector import RenderSelector
from .types import (
    DeleteRequest,
    OutputPlan,
    PageRef,
    PlanKind,
    RedirectInstruction,
    RenderCurrent,
    ResolvedView,
    RevisionFlags,
    RevisionRef,
    ViewRequest,
)
from .urls import title_url
from .visibility import VisibilityGate


log = logging.getLogger(__name__)

# Plans that carry page content and so get the content-view finishing touches
_CONTENT_PLANS = (
    PlanKind.HOOK_OUTPUT,
    PlanKind.SERVE_FROM_CACHE,
    PlanKind.SERVE_FROM_FILE_CACHE,
    PlanKind.RENDER_FRESH,
)

_AUTO_REASON_LENGTH = 150
_MIN_CDN_TTL = 60


# -----------------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def adapt_cdn_ttl(touched: Optional[datetime], max_ttl: int, now: Optional[datetime] = None) -> int:
    """Shorter client/CDN lifetimes for recently changed pages.

    A page last touched ``age`` seconds ago is cached for a tenth of that,
    never less than a minute and never more than ``max_ttl``.
    """
    if touched is None:
        return max_ttl
    now = now or datetime.now(tz=timezone.utc)
    age = max((now - _as_utc(touched)).total_seconds(), 0)
    return int(min(max_ttl, max(math.ceil(age / 10), _MIN_CDN_TTL)))


def split_target(target: str, default_namespace: str) -> tuple[str, str]:
    """``"Help:Foo"`` -> ``("Help", "Foo")``; bare titles get the default namespace."""
    if ":" in target:
        ns, title = target.split(":", 1)
        if ns.strip() and title.strip():
            return ns.strip(), title.strip()
    return default_namespace, target.strip()


# -----------------------------------------------------------------------------

class PageViewController:

    def __init__(
        self,
        store: RevisionStore,
        render_cache: RenderCache,
        renderer: Renderer,
        diff_engine: DiffEngine,
        file_cache: Optional[FileCache] = None,
        hooks: Sequence[ViewHeaderHandler] = (),
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.render_cache = render_cache
        self.renderer = renderer
        self.diff_engine = diff_engine
        self.file_cache = file_cache
        self.hooks = tuple(hooks)
        self.gate = VisibilityGate(self.settings.base_url)
        self.resolver = RevisionResolver(store, self.settings.base_url)
        self.selector = RenderSelector(store, render_cache, self.gate, file_cache, self.settings)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Entry points
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def view(self, request: ViewRequest, authority: Authority) -> OutputPlan:
        ctx = ViewContext.for_request(request, authority)
        try:
            return await self._view(ctx)
        except ViewError as exc:
            return self._error_plan(request.page, exc)

    async def show_diff_page(self, request: ViewRequest, authority: Authority) -> OutputPlan:
        ctx = ViewContext.for_request(request, authority)
        try:
            if not authority.can_read(request.page):
                raise PermissionDenied("permission-denied", "read")
            return self._finish(ctx, await self._show_diff_page(ctx, request.page))
        except ViewError as exc:
            return self._error_plan(request.page, exc)

    async def render(self, request: ViewRequest, authority: Authority) -> OutputPlan:
        """Body-only output for embedding; never indexed."""
        log.debug("render action for %s", request.page.prefixed_title)
        plan = await self.view(dataclasses.replace(request, render_action=True), authority)
        plan.body_only = True
        plan.headers["X-Robots-Tag"] = "noindex"
        return plan

    async def delete(self, request: DeleteRequest, authority: Authority) -> OutputPlan:
        try:
            return await self._delete(request, authority)
        except ViewError as exc:
            return self._error_plan(request.page, exc)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # View
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _view(self, ctx: ViewContext) -> OutputPlan:
        request = ctx.request
        resolved = await self.resolver.resolve(request.page, request.oldid, request.direction)

        # Resolution may have switched to the page that owns ``oldid``
        page = resolved.page
        if not ctx.authority.can_read(page):
            log.debug("read of %s denied", page.prefixed_title)
            raise PermissionDenied("permission-denied", "read")

        if isinstance(resolved, RedirectInstruction):
            log.debug("redirecting due to %s", resolved.reason)
            return OutputPlan(
                PlanKind.REDIRECT, page, status_code=302, redirect_url=resolved.url,
            )

        if request.diff is not None:
            return self._finish(ctx, await self._show_diff_page(ctx, page))

        redirect = self._follow_redirect(ctx, resolved)
        if redirect is not None:
            return redirect

        hook = await run_view_header_hooks(self.hooks, ctx)
        try_file_cache = self._file_cache_eligible(ctx, resolved)
        cache = CacheState(
            use_render_cache=self.settings.use_render_cache and hook.use_render_cache,
            hook=hook,
            try_file_cache=try_file_cache,
        )

        plan = await self.selector.select_output(ctx, resolved, cache)
        if plan.kind is PlanKind.RENDER_FRESH:
            plan = await self._emit_fresh(ctx, plan, try_file_cache)
        return self._finish(ctx, plan)

    def _follow_redirect(self, ctx: ViewContext, resolved: ResolvedView) -> Optional[OutputPlan]:
        request = ctx.request
        page = resolved.page
        if not (
            isinstance(resolved, RenderCurrent)
            and request.follow_redirects
            and page.is_redirect
            and page.redirect_target
        ):
            return None
        namespace, title = split_target(page.redirect_target, page.namespace)
        url = title_url(
            namespace, title, self.settings.base_url, redirected_from=page.prefixed_title,
        )
        log.debug("following redirect from %s to %s", page.prefixed_title, page.redirect_target)
        return OutputPlan(PlanKind.REDIRECT, page, status_code=302, redirect_url=url)

    def _file_cache_eligible(self, ctx: ViewContext, resolved: ResolvedView) -> bool:
        request = ctx.request
        return (
            self.file_cache is not None
            and self.settings.use_file_cache
            and isinstance(resolved, RenderCurrent)
            and not request.oldid
            and not ctx.authority.is_registered
            and not request.printable
            and not request.redirected_from
            and not request.render_action
            and not resolved.page.is_redirect
        )

    # ── Emit ─────────────────────────────────────────────────────────────

    async def _emit_fresh(
        self,
        ctx: ViewContext,
        plan: OutputPlan,
        try_file_cache: bool,
    ) -> OutputPlan:
        page = plan.page
        revision = await self._with_content(plan.revision)
        plan.revision = revision

        log.debug("doing uncached render of %s at revision %s", page.prefixed_title, revision.id)
        status = await self.renderer.render(page, revision, ctx.options)

        if status.ok:
            plan.output = status.output
            if status.is_degraded:
                log.info("degraded render of %s (%s)", page.prefixed_title, status.reason)
                plan.cdn_maxage = self.settings.cdn_maxage_stale
                plan.add_notice("stale-render", status.reason)
                plan.cache_write = False
            if plan.cache_write:
                await self.render_cache.put(page, revision, ctx.options, status.output)
            if (
                try_file_cache
                and revision.is_current
                and not revision.is_placeholder
                and not status.is_degraded
            ):
                await self.file_cache.save(page, status.output.html)
            return plan

        # Only the current revision has a cached copy worth falling back to
        if revision.is_current:
            stale = await self.render_cache.get_stale(page, ctx.options)
            if stale is not None:
                log.warning(
                    "render of %s failed (%s); serving stale copy",
                    page.prefixed_title, status.reason,
                )
                plan.kind = PlanKind.SERVE_FROM_CACHE
                plan.output = stale
                plan.revision_id = stale.revision_id
                plan.revision_timestamp = stale.revision_timestamp
                plan.cdn_maxage = self.settings.cdn_maxage_stale
                plan.cache_write = False
                plan.add_notice("stale-render", status.reason)
                return plan

        log.error("render of %s failed: %s", page.prefixed_title, status.error_key)
        raise RenderFailed(status.error_key or "render-error", reason=status.reason or "error")

    async def _with_content(self, revision: RevisionRef) -> RevisionRef:
        if revision.content is not None:
            return revision
        return dataclasses.replace(revision, content=await self.store.load_content(revision))

    # ── Finish ───────────────────────────────────────────────────────────

    def _finish(self, ctx: ViewContext, plan: OutputPlan) -> OutputPlan:
        request = ctx.request
        page = plan.page

        if plan.index_policy is None and plan.follow_policy is None:
            policy = get_robot_policy(page, request, self.settings, plan.output)
            plan.index_policy, plan.follow_policy = policy.index, policy.follow

        if plan.output is not None and plan.output.display_title:
            plan.display_title = plan.output.display_title

        if plan.kind in _CONTENT_PLANS:
            if request.redirected_from:
                plan.add_notice("redirected-from", request.redirected_from, level="subtitle")
            if page.is_redirect and not request.follow_redirects:
                plan.add_notice("redirect-page", page.redirect_target, level="subtitle")
            if request.printable:
                plan.add_notice("printable-deprecated", level="info")
            if plan.cdn_maxage is None:
                plan.cdn_maxage = adapt_cdn_ttl(page.touched, self.settings.cdn_maxage)

        if (
            request.render_action
            or request.printable
            or plan.kind not in _CONTENT_PLANS
            or (plan.revision_id and plan.revision_id != page.latest_rev_id)
            or not ctx.authority.can("edit", page)
        ):
            plan.section_edit_links = False

        return plan

    def _error_plan(self, page: PageRef, exc: ViewError) -> OutputPlan:
        log.info("view of %s failed: %s", page.prefixed_title, exc)
        return OutputPlan(
            PlanKind.SHOW_FETCH_ERROR,
            page,
            status_code=exc.status_code,
            error_key=exc.key,
            error_params=exc.params,
            index_policy=NOINDEX_NOFOLLOW.index,
            follow_policy=NOINDEX_NOFOLLOW.follow,
            cdn_maxage=0,
            section_edit_links=False,
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Diff
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _show_diff_page(self, ctx: ViewContext, page: PageRef) -> OutputPlan:
        request = ctx.request
        log.debug("showing diff page for %s", page.prefixed_title)

        old_id, new_id = await self.diff_engine.map_diff_prev_next(
            page, request.oldid, request.diff or "prev",
        )
        if not new_id:
            raise NotFound("diff-missing-revision", request.diff)
        new = await self.store.get_by_id(new_id)
        if new is None:
            raise NotFound("diff-missing-revision", new_id)
        old = None
        if old_id:
            old = await self.store.get_by_id(old_id)
            if old is None:
                raise NotFound("diff-missing-revision", old_id)

        plan = OutputPlan(
            PlanKind.SHOW_DIFF,
            page,
            revision=new,
            revision_id=new.id,
            revision_timestamp=new.timestamp,
        )
        for revision in (old, new):
            if revision is None:
                continue
            decision = self.gate.display_for(revision, ctx.authority, request.unhide)
            notice = self.gate.display_notice(page, revision, decision)
            if notice is not None:
                plan.notices.append(notice)
            if not decision.allowed:
                plan.kind = PlanKind.SHOW_DELETED_REVISION
                return plan

        new = await self._with_content(new)
        if old is not None:
            old = await self._with_content(old)
        plan.revision = new
        plan.diff = await self.diff_engine.render(old, new)

        if not request.diff_only:
            status = await self.renderer.render(page, new, ctx.options)
            if status.ok:
                plan.output = status.output
            else:
                # The diff itself is still worth showing
                log.warning("render below diff of %s failed: %s", page.prefixed_title, status.error_key)
                plan.add_notice(status.error_key or "render-error")
        return plan

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Delete
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _delete(self, request: DeleteRequest, authority: Authority) -> OutputPlan:
        page = request.page
        if not authority.can("delete", page):
            raise PermissionDenied("permission-denied", "delete")

        if not page.exists:
            return await self._cannot_delete(page)

        if request.confirmed:
            reason = request.full_reason
            suppress = request.suppress and authority.is_allowed("suppressrevision")
            log.info(
                "deleting %s (suppress=%s) by %s", page.prefixed_title, suppress, authority.name,
            )
            if not await self.store.delete_page(page, reason, suppress, authority.user_id):
                # Someone else got there first
                return await self._cannot_delete(page)
            plan = self._delete_plan(PlanKind.DELETED, page)
            plan.delete_reason = reason
            plan.add_notice("deleted-text", page.prefixed_title, level="info")
            plan.log_entries = await self.store.recent_log_entries(page, ("delete",))
            return plan

        count = await self.store.count_revisions(page)
        plan = self._delete_plan(PlanKind.DELETE_CONFIRM, page)
        plan.revision_count = count
        plan.delete_reason = request.full_reason or await self._auto_reason(page)
        if count > 1:
            plan.add_notice("delete-history-warning", count)
        if count > self.settings.big_delete_revisions_limit:
            plan.add_notice("delete-too-big", self.settings.big_delete_revisions_limit)
        return plan

    async def _cannot_delete(self, page: PageRef) -> OutputPlan:
        plan = self._delete_plan(PlanKind.CANNOT_DELETE, page)
        plan.status_code = 404
        plan.error_key = "cannot-delete"
        plan.error_params = (page.prefixed_title,)
        plan.log_entries = await self.store.recent_log_entries(page, ("delete",))
        return plan

    @staticmethod
    def _delete_plan(kind: PlanKind, page: PageRef) -> OutputPlan:
        return OutputPlan(
            kind,
            page,
            index_policy=NOINDEX_NOFOLLOW.index,
            follow_policy=NOINDEX_NOFOLLOW.follow,
            cdn_maxage=0,
            section_edit_links=False,
        )

    async def _auto_reason(self, page: PageRef) -> str:
        current = await self.store.get_current(page)
        if current is None or current.is_deleted(RevisionFlags.TEXT):
            return ""
        text = (await self.store.load_content(current)).strip()
        if not text:
            return format_message("delete-auto-reason-blank")
        text = " ".join(text.split())
        if len(text) > _AUTO_REASON_LENGTH:
            text = text[:_AUTO_REASON_LENGTH].rstrip() + "..."
        return format_message("delete-auto-reason", text)


# -----------------------------------------------------------------------------
