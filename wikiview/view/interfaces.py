#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Collaborator contracts
======================
The view core only talks to these abstract classes.  The SQL-backed
implementations live in ``wikiview.services``; the tests use in-memory ones.

All I/O-bound methods are coroutines: the awaits on them are the only points
at which a page view yields to other requests.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .types import (
    DiffResult,
    LogEntryRef,
    PageRef,
    RenderedOutput,
    RenderOptions,
    RenderStatus,
    RevisionRef,
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Revision store
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RevisionStore(ABC):

    @abstractmethod
    async def get_page_by_id(self, page_id: int) -> Optional[PageRef]:
        ...

    @abstractmethod
    async def get_current(self, page: PageRef) -> Optional[RevisionRef]:
        """Latest revision of *page*, without content."""

    @abstractmethod
    async def get_by_id(self, rev_id: int) -> Optional[RevisionRef]:
        ...

    @abstractmethod
    async def get_next(self, revision: RevisionRef) -> Optional[RevisionRef]:
        ...

    @abstractmethod
    async def get_previous(self, revision: RevisionRef) -> Optional[RevisionRef]:
        ...

    @abstractmethod
    async def load_content(self, revision: RevisionRef) -> str:
        """Return the revision's text.  Deliberately separate from lookups."""

    @abstractmethod
    async def get_archived(self, rev_id: int) -> Optional[RevisionRef]:
        """A revision of a deleted page, if it is still in the archive."""

    @abstractmethod
    async def count_revisions(self, page: PageRef) -> int:
        ...

    @abstractmethod
    async def delete_page(
        self,
        page: PageRef,
        reason: str,
        suppress: bool = False,
        actor_id: Optional[str] = None,
    ) -> bool:
        """Archive every revision of *page*.  False if it was already gone."""

    @abstractmethod
    async def recent_log_entries(
        self,
        page: PageRef,
        log_types: tuple[str, ...] = ("delete", "move", "protect"),
        limit: int = 10,
    ) -> list[LogEntryRef]:
        ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Authority
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Authority(ABC):
    """What the current caller is allowed to do.  Built once per request."""

    @property
    @abstractmethod
    def is_registered(self) -> bool:
        ...

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]:
        ...

    @property
    @abstractmethod
    def name(self) -> Optional[str]:
        ...

    @abstractmethod
    def is_allowed(self, right: str) -> bool:
        ...

    @abstractmethod
    def can_read(self, page: PageRef) -> bool:
        ...

    @abstractmethod
    def can(self, action: str, page: PageRef) -> bool:
        """``action`` is "edit", "create" or "delete"."""

    @abstractmethod
    def can_view_deleted_text(self, revision: RevisionRef) -> bool:
        """Rights check only; callers decide whether the text is deleted."""


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Caches
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderCache(ABC):

    @abstractmethod
    async def get(
        self,
        page: PageRef,
        revision: Optional[RevisionRef],
        options: RenderOptions,
    ) -> Optional[RenderedOutput]:
        """A valid entry, or None.  ``revision=None`` means the page's latest."""

    @abstractmethod
    async def get_stale(self, page: PageRef, options: RenderOptions) -> Optional[RenderedOutput]:
        """The newest entry for the current revision of *page* regardless of validity, flagged stale."""

    @abstractmethod
    async def put(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
        output: RenderedOutput,
    ) -> None:
        ...


class FileCache(ABC):

    @abstractmethod
    async def is_cache_good(self, page: PageRef) -> bool:
        ...

    @abstractmethod
    async def load(self, page: PageRef) -> Optional[str]:
        ...

    @abstractmethod
    async def save(self, page: PageRef, html: str) -> None:
        ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Renderer / diff
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Renderer(ABC):

    @abstractmethod
    async def render(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
    ) -> RenderStatus:
        """Never raises for content problems; failures come back as a status."""


class DiffEngine(ABC):

    @abstractmethod
    async def map_diff_prev_next(
        self,
        page: PageRef,
        oldid: int,
        diff: str,
    ) -> tuple[Optional[int], Optional[int]]:
        """Turn the (oldid, diff) request pair into concrete (old, new) ids."""

    @abstractmethod
    async def render(self, old: Optional[RevisionRef], new: RevisionRef) -> DiffResult:
        ...


# -----------------------------------------------------------------------------
