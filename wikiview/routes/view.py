#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page view router
================
GET  /wiki/{ns}/{slug}           — view page (oldid, direction, diff, unhide, printable, ...)
GET  /wiki/{ns}/{slug}/render    — body-only render action
GET  /wiki/{ns}/{slug}/delete    — delete confirmation                [auth]
POST /wiki/{ns}/{slug}/delete    — delete page                        [auth]

Every response is the JSON form of the controller's ``OutputPlan``, sent
with the plan's status code and cache headers; redirects are plain 302s.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.core.config import get_settings
from wikiview.core.database import get_db
from wikiview.core.security import get_optional_user_id
from wikiview.schemas import (
    DeleteForm, DiffResponse, ErrorResponse,
    LogEntryResponse, NoticeResponse, ViewResponse,
)
from wikiview.services import pages as page_svc
from wikiview.services.authority import UserAuthority
from wikiview.services.diff import TextDiffEngine
from wikiview.services.file_cache import HtmlFileCache
from wikiview.services.render_cache import SqlRenderCache
from wikiview.services.renderer import MarkupRenderer
from wikiview.services.revisions import SqlRevisionStore
from wikiview.services.users import get_user_by_id_or_none
from wikiview.view import (
    DeleteRequest, Direction, OutputPlan, PageViewController,
    PlanKind, ViewHeaderHandler, ViewRequest,
)
from wikiview.view.interfaces import Authority
from wikiview.view.messages import format_message


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/wiki", tags=["wiki"])


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_view_hooks() -> tuple[ViewHeaderHandler, ...]:
    """View-header handlers; extensions register theirs via dependency overrides."""
    return ()


async def get_controller(
    db: AsyncSession = Depends(get_db),
    hooks: tuple[ViewHeaderHandler, ...] = Depends(get_view_hooks),
) -> PageViewController:
    settings = get_settings()
    store = SqlRevisionStore(db)
    return PageViewController(
        store=store,
        render_cache=SqlRenderCache(db, settings),
        renderer=MarkupRenderer(settings),
        diff_engine=TextDiffEngine(store),
        file_cache=HtmlFileCache(settings) if settings.use_file_cache else None,
        hooks=hooks,
        settings=settings,
    )


async def get_authority(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
) -> UserAuthority:
    user = await get_user_by_id_or_none(db, user_id)
    return UserAuthority(user, get_settings())


# ── Plan → response ──────────────────────────────────────────────────────────

def _cache_control(plan: OutputPlan, authority: Authority) -> str:
    if plan.cdn_maxage == 0 or plan.status_code >= 400:
        return "private, no-cache, max-age=0"
    if authority.is_registered:
        return "private, must-revalidate, max-age=0"
    maxage = plan.cdn_maxage if plan.cdn_maxage is not None else get_settings().cdn_maxage
    return f"public, s-maxage={maxage}, max-age=0, must-revalidate"


def plan_to_view_response(plan: OutputPlan) -> ViewResponse:
    page = plan.page
    error = None
    if plan.error_key:
        error = ErrorResponse(
            key=plan.error_key,
            message=format_message(plan.error_key, *plan.error_params),
            params=list(plan.error_params),
        )
    return ViewResponse(
        kind=plan.kind.value,
        namespace=page.namespace,
        title=page.title,
        display_title=plan.display_title,
        exists=page.exists,
        revision_id=plan.revision_id,
        revision_timestamp=plan.revision_timestamp,
        html=plan.html,
        stale=bool(plan.output and plan.output.stale),
        robots=",".join(p for p in (plan.index_policy, plan.follow_policy) if p),
        section_edit_links=plan.section_edit_links,
        body_only=plan.body_only,
        error=error,
        notices=[
            NoticeResponse(
                key=n.key,
                level=n.level,
                message=format_message(n.key, *n.params),
                params=list(n.params),
            )
            for n in plan.notices
        ],
        diff=DiffResponse(
            old_id=plan.diff.old_id, new_id=plan.diff.new_id, groups=plan.diff.groups,
        ) if plan.diff else None,
        log_entries=[
            LogEntryResponse(
                log_type=e.log_type,
                action=e.action,
                title=e.title,
                comment=e.comment,
                user=e.user_name,
                timestamp=e.timestamp,
            )
            for e in plan.log_entries
        ],
        delete_reason=plan.delete_reason,
        revision_count=plan.revision_count,
    )


def plan_response(plan: OutputPlan, authority: Authority):
    if plan.kind is PlanKind.REDIRECT:
        return RedirectResponse(plan.redirect_url, status_code=plan.status_code or 302)
    headers = dict(plan.headers)
    headers["Cache-Control"] = _cache_control(plan, authority)
    return JSONResponse(
        content=plan_to_view_response(plan).model_dump(mode="json"),
        status_code=plan.status_code,
        headers=headers,
    )


# ── View ─────────────────────────────────────────────────────────────────────

def view_params(
    oldid:           int           = Query(0, ge=0),
    direction:       Optional[str] = Query(None, max_length=16),
    diff:            Optional[str] = Query(None, max_length=32),
    unhide:          bool          = Query(False),
    printable:       bool          = Query(False),
    redirect:        Optional[str] = Query(None, max_length=8),
    redirected_from: Optional[str] = Query(None, max_length=512),
    curid:           Optional[int] = Query(None, ge=0),
    diffonly:        bool          = Query(False),
) -> dict:
    """Query parameters shared by the view and render actions."""
    return dict(
        oldid=oldid,
        direction=Direction.parse(direction),
        diff=diff,
        unhide=unhide,
        printable=printable,
        follow_redirects=redirect != "no",
        redirected_from=redirected_from,
        curid=curid is not None,
        diff_only=diffonly,
    )


@router.get("/{namespace_name}/{slug}", response_model=ViewResponse)
async def view_page(
    namespace_name: str,
    slug: str,
    params:     dict               = Depends(view_params),
    db:         AsyncSession       = Depends(get_db),
    controller: PageViewController = Depends(get_controller),
    authority:  UserAuthority      = Depends(get_authority),
):
    page = await page_svc.get_page_ref(db, namespace_name, slug)
    plan = await controller.view(ViewRequest(page=page, **params), authority)
    return plan_response(plan, authority)


@router.get("/{namespace_name}/{slug}/render", response_model=ViewResponse)
async def render_page(
    namespace_name: str,
    slug: str,
    params:     dict               = Depends(view_params),
    db:         AsyncSession       = Depends(get_db),
    controller: PageViewController = Depends(get_controller),
    authority:  UserAuthority      = Depends(get_authority),
):
    """Page body only, for embedding elsewhere."""
    page = await page_svc.get_page_ref(db, namespace_name, slug)
    plan = await controller.render(ViewRequest(page=page, **params), authority)
    return plan_response(plan, authority)


# ── Delete ───────────────────────────────────────────────────────────────────

@router.get("/{namespace_name}/{slug}/delete", response_model=ViewResponse)
async def delete_confirm(
    namespace_name: str,
    slug: str,
    db:         AsyncSession       = Depends(get_db),
    controller: PageViewController = Depends(get_controller),
    authority:  UserAuthority      = Depends(get_authority),
):
    page = await page_svc.get_page_ref(db, namespace_name, slug)
    plan = await controller.delete(DeleteRequest(page=page), authority)
    return plan_response(plan, authority)


@router.post("/{namespace_name}/{slug}/delete", response_model=ViewResponse)
async def delete_page(
    namespace_name: str,
    slug: str,
    form:       DeleteForm,
    db:         AsyncSession       = Depends(get_db),
    controller: PageViewController = Depends(get_controller),
    authority:  UserAuthority      = Depends(get_authority),
):
    page = await page_svc.get_page_ref(db, namespace_name, slug)
    request = DeleteRequest(
        page=page,
        confirmed=True,
        reason_list=form.reason_list,
        reason=form.reason,
        suppress=form.suppress,
    )
    plan = await controller.delete(request, authority)
    return plan_response(plan, authority)


# -----------------------------------------------------------------------------
