#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
In-memory collaborators for the view core tests.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Optional

from wikiview.core.config import Settings
from wikiview.view.interfaces import Authority, FileCache, RenderCache, Renderer, RevisionStore
from wikiview.view.types import (
    LogEntryRef,
    PageRef,
    RenderedOutput,
    RenderOptions,
    RenderStatus,
    RevisionRef,
)
from wikiview.view.urls import slugify


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_settings(**overrides) -> Settings:
    values = {"environment": "testing", "base_url": "", "send_404_code": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Store
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FakeStore(RevisionStore):

    def __init__(self) -> None:
        self.pages: dict[int, PageRef] = {}
        self.revisions: dict[int, RevisionRef] = {}
        self.content: dict[int, str] = {}
        self.archive: dict[int, RevisionRef] = {}
        self.logs: list[LogEntryRef] = []
        self.content_loads: list[int] = []
        self.delete_calls: list[tuple[int, str, bool, Optional[str]]] = []

    def add_page(
        self,
        page_id: int,
        title: str,
        rev_ids: list[int],
        namespace: str = "Main",
        deleted: Optional[dict[int, int]] = None,
        contents: Optional[dict[int, str]] = None,
        is_redirect: bool = False,
        redirect_target: Optional[str] = None,
        touched: Optional[datetime] = None,
    ) -> PageRef:
        latest = max(rev_ids) if rev_ids else None
        page = PageRef(
            id=page_id,
            namespace=namespace,
            title=title,
            slug=slugify(title),
            latest_rev_id=latest,
            touched=touched or BASE_TIME,
            is_redirect=is_redirect,
            redirect_target=redirect_target,
        )
        self.pages[page_id] = page
        for rev_id in rev_ids:
            self.revisions[rev_id] = RevisionRef(
                id=rev_id,
                page_id=page_id,
                timestamp=BASE_TIME + timedelta(minutes=rev_id),
                author_name="alice",
                deleted=(deleted or {}).get(rev_id, 0),
                is_current=rev_id == latest,
            )
            self.content[rev_id] = (contents or {}).get(rev_id, f"text of {rev_id}")
        return page

    # -------------------------------------------------------------------------

    async def get_page_by_id(self, page_id: int) -> Optional[PageRef]:
        return self.pages.get(page_id)

    async def get_current(self, page: PageRef) -> Optional[RevisionRef]:
        stored = self.pages.get(page.id)
        if stored is None or not stored.latest_rev_id:
            return None
        return self.revisions.get(stored.latest_rev_id)

    async def get_by_id(self, rev_id: int) -> Optional[RevisionRef]:
        return self.revisions.get(rev_id)

    def _history(self, page_id: int) -> list[int]:
        return sorted(r.id for r in self.revisions.values() if r.page_id == page_id)

    async def get_next(self, revision: RevisionRef) -> Optional[RevisionRef]:
        later = [i for i in self._history(revision.page_id) if i > revision.id]
        return self.revisions[later[0]] if later else None

    async def get_previous(self, revision: RevisionRef) -> Optional[RevisionRef]:
        earlier = [i for i in self._history(revision.page_id) if i < revision.id]
        return self.revisions[earlier[-1]] if earlier else None

    async def load_content(self, revision: RevisionRef) -> str:
        self.content_loads.append(revision.id)
        return self.content.get(revision.id, "")

    async def get_archived(self, rev_id: int) -> Optional[RevisionRef]:
        return self.archive.get(rev_id)

    async def count_revisions(self, page: PageRef) -> int:
        return len(self._history(page.id))

    async def delete_page(
        self,
        page: PageRef,
        reason: str,
        suppress: bool = False,
        actor_id: Optional[str] = None,
    ) -> bool:
        self.delete_calls.append((page.id, reason, suppress, actor_id))
        stored = self.pages.get(page.id)
        if stored is None or not stored.latest_rev_id:
            return False
        for rev_id in self._history(page.id):
            self.archive[rev_id] = self.revisions.pop(rev_id)
        self.pages[page.id] = dataclasses.replace(stored, latest_rev_id=None)
        self.logs.append(LogEntryRef(
            "delete", "delete", page.prefixed_title, reason, None, BASE_TIME,
        ))
        return True

    async def recent_log_entries(
        self,
        page: PageRef,
        log_types: tuple[str, ...] = ("delete", "move", "protect"),
        limit: int = 10,
    ) -> list[LogEntryRef]:
        return [
            e for e in self.logs
            if e.title == page.prefixed_title and e.log_type in log_types
        ][:limit]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Authority
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FakeAuthority(Authority):

    def __init__(self, name: Optional[str] = None, rights: tuple[str, ...] = ("read",)) -> None:
        self._name = name
        self.rights = set(rights)

    @classmethod
    def anon(cls, *extra: str) -> "FakeAuthority":
        return cls(None, ("read", "edit", "createpage") + extra)

    @classmethod
    def user(cls, *extra: str) -> "FakeAuthority":
        return cls("bob", ("read", "edit", "createpage") + extra)

    @classmethod
    def sysop(cls, *extra: str) -> "FakeAuthority":
        return cls("sue", ("read", "edit", "createpage", "delete", "deletedtext") + extra)

    @property
    def is_registered(self) -> bool:
        return self._name is not None

    @property
    def user_id(self) -> Optional[str]:
        return f"id-{self._name}" if self._name else None

    @property
    def name(self) -> Optional[str]:
        return self._name

    def is_allowed(self, right: str) -> bool:
        return right in self.rights

    def can_read(self, page: PageRef) -> bool:
        return "read" in self.rights

    def can(self, action: str, page: PageRef) -> bool:
        right = {"edit": "edit", "create": "createpage", "delete": "delete"}[action]
        return self.can_read(page) and right in self.rights

    def can_view_deleted_text(self, revision: RevisionRef) -> bool:
        if revision.deleted & 8:
            return "viewsuppressed" in self.rights
        return "deletedtext" in self.rights


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Caches
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def rendered(rev_id: int, html: Optional[str] = None, **kw) -> RenderedOutput:
    return RenderedOutput(
        html=html or f"<p>cached {rev_id}</p>",
        revision_id=rev_id,
        revision_timestamp=BASE_TIME + timedelta(minutes=rev_id),
        cache_time=BASE_TIME + timedelta(days=1),
        **kw,
    )


class FakeRenderCache(RenderCache):

    def __init__(self) -> None:
        self.entries: dict[tuple[int, int, str], RenderedOutput] = {}
        self.stale: dict[tuple[int, str], RenderedOutput] = {}
        self.puts: list[tuple[int, int]] = []
        self.gets: list[tuple[int, Optional[int]]] = []

    def prime(self, page: PageRef, rev_id: int, options: RenderOptions = RenderOptions(), **kw) -> None:
        self.entries[(page.id, rev_id, options.cache_key())] = rendered(rev_id, **kw)

    async def get(
        self,
        page: PageRef,
        revision: Optional[RevisionRef],
        options: RenderOptions,
    ) -> Optional[RenderedOutput]:
        rev_id = revision.id if revision is not None else page.latest_rev_id
        self.gets.append((page.id, rev_id))
        return self.entries.get((page.id, rev_id, options.cache_key()))

    async def get_stale(self, page: PageRef, options: RenderOptions) -> Optional[RenderedOutput]:
        stale = self.stale.get((page.id, options.cache_key()))
        if stale is not None and stale.revision_id != page.latest_rev_id:
            return None
        return stale

    async def put(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
        output: RenderedOutput,
    ) -> None:
        self.puts.append((page.id, revision.id))
        self.entries[(page.id, revision.id, options.cache_key())] = output


class FakeFileCache(FileCache):

    def __init__(self) -> None:
        self.files: dict[int, str] = {}
        self.saves: list[int] = []

    async def is_cache_good(self, page: PageRef) -> bool:
        return page.id in self.files

    async def load(self, page: PageRef) -> Optional[str]:
        return self.files.get(page.id)

    async def save(self, page: PageRef, html: str) -> None:
        self.saves.append(page.id)
        self.files[page.id] = html


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Renderer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FakeRenderer(Renderer):
    """Wraps the revision text in <p>; ``status`` forces a given result."""

    def __init__(self, status: Optional[RenderStatus] = None, **output_kw) -> None:
        self.status = status
        self.output_kw = output_kw
        self.calls: list[Optional[int]] = []

    async def render(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
    ) -> RenderStatus:
        self.calls.append(revision.id)
        if self.status is not None:
            return self.status
        return RenderStatus.good(RenderedOutput(
            html=f"<p>{revision.content}</p>",
            revision_id=revision.id,
            revision_timestamp=revision.timestamp,
            cache_time=BASE_TIME + timedelta(days=2),
            **self.output_kw,
        ))


# -----------------------------------------------------------------------------
