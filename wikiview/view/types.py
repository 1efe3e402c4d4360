#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Value types for a single page view
==================================
PageRef / RevisionRef   snapshots of store rows, read once per request
ViewRequest             what the caller asked for
ResolvedView            what the resolver decided to show
FetchOutcome            whether the revision's content may be fetched
OutputPlan              what the HTTP layer should emit

Every object here is request-scoped: nothing is cached on the controller and
nothing outlives the request that built it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union


log = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Enums
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Direction(str, enum.Enum):
    NONE = ""
    PREV = "prev"
    NEXT = "next"

    @classmethod
    def parse(cls, value: str | None) -> "Direction":
        """Unknown values degrade to NONE instead of failing the request."""
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            log.warning("ignoring unknown navigation direction %r", value)
            return cls.NONE


class RevisionFlags(enum.IntFlag):
    """Bits of ``RevisionRef.deleted``."""
    TEXT = 1
    COMMENT = 2
    USER = 4
    RESTRICTED = 8   # suppressed: hidden even from ordinary deleted-text viewers

    @classmethod
    def all_hidden(cls) -> "RevisionFlags":
        return cls.TEXT | cls.COMMENT | cls.USER


class FetchFailure(str, enum.Enum):
    NOT_FOUND = "not-found"
    PERMISSION = "permission"


class PlanKind(str, enum.Enum):
    HOOK_OUTPUT = "hook-output"
    SERVE_FROM_CACHE = "serve-from-cache"
    SERVE_FROM_FILE_CACHE = "serve-from-file-cache"
    RENDER_FRESH = "render-fresh"
    SHOW_MISSING_PAGE = "show-missing-page"
    SHOW_FETCH_ERROR = "show-fetch-error"
    SHOW_DELETED_REVISION = "show-deleted-revision"
    SHOW_DIFF = "show-diff"
    REDIRECT = "redirect"
    DELETE_CONFIRM = "delete-confirm"
    DELETED = "deleted"
    CANNOT_DELETE = "cannot-delete"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Store snapshots
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class PageRef:
    id: int                                 # 0 for a title that has no page row
    namespace: str
    title: str
    slug: str
    latest_rev_id: Optional[int] = None
    touched: Optional[datetime] = None
    is_redirect: bool = False
    redirect_target: Optional[str] = None

    @property
    def exists(self) -> bool:
        return bool(self.id) and bool(self.latest_rev_id)

    @property
    def prefixed_title(self) -> str:
        return f"{self.namespace}:{self.title}"

    @property
    def prefixed_key(self) -> str:
        """Prefixed title usable inside a wikilink (no whitespace)."""
        return self.prefixed_title.replace(" ", "_")


@dataclass(frozen=True)
class RevisionRef:
    id: Optional[int]                       # None for an unsaved placeholder
    page_id: int
    timestamp: datetime
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    deleted: int = 0
    is_current: bool = False
    format: str = "markdown"
    comment: str = ""
    # Filled in only by RevisionStore.load_content()
    content: Optional[str] = None

    def is_deleted(self, flag: int) -> bool:
        return bool(self.deleted & flag)

    @property
    def is_placeholder(self) -> bool:
        return not self.id


@dataclass(frozen=True)
class LogEntryRef:
    log_type: str                           # "delete", "move", "protect"
    action: str
    title: str
    comment: str
    user_name: Optional[str]
    timestamp: datetime


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Requests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ViewRequest:
    page: PageRef
    oldid: int = 0                          # 0 means "latest"
    direction: Direction = Direction.NONE
    diff: Optional[str] = None              # None = no diff; "prev", "next", "cur" or an id
    unhide: bool = False
    printable: bool = False
    follow_redirects: bool = True           # False for ?redirect=no
    redirected_from: Optional[str] = None
    curid: bool = False
    render_action: bool = False
    diff_only: bool = False


@dataclass(frozen=True)
class DeleteRequest:
    page: PageRef
    confirmed: bool = False
    reason_list: str = "other"
    reason: str = ""
    suppress: bool = False

    @property
    def full_reason(self) -> str:
        """Dropdown reason and free text, combined the way the form expects."""
        if self.reason_list == "other":
            return self.reason.strip()
        if self.reason.strip():
            return f"{self.reason_list}: {self.reason.strip()}"
        return self.reason_list


@dataclass(frozen=True)
class RenderOptions:
    printable: bool = False
    lang: str = "en"

    def cache_key(self) -> str:
        return f"printable={int(self.printable)}!lang={self.lang}"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Resolution results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RenderCurrent:
    page: PageRef
    revision: RevisionRef


@dataclass(frozen=True)
class RenderOld:
    page: PageRef
    revision: RevisionRef


@dataclass(frozen=True)
class ShowDiff:
    page: PageRef
    old: Optional[RevisionRef]
    new: RevisionRef


@dataclass(frozen=True)
class Missing:
    page: PageRef
    missing_rev_id: Optional[int] = None


@dataclass(frozen=True)
class RedirectInstruction:
    page: PageRef
    url: str
    reason: str


ResolvedView = Union[RenderCurrent, RenderOld, ShowDiff, Missing]


@dataclass(frozen=True)
class FetchOutcome:
    revision: Optional[RevisionRef] = None
    failure: Optional[FetchFailure] = None
    key: Optional[str] = None
    params: tuple[Any, ...] = ()

    @classmethod
    def success(cls, revision: RevisionRef) -> "FetchOutcome":
        return cls(revision=revision)

    @classmethod
    def fail(cls, failure: FetchFailure, key: str, *params: Any) -> "FetchOutcome":
        return cls(failure=failure, key=key, params=params)

    @property
    def ok(self) -> bool:
        return self.failure is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RenderedOutput:
    html: str
    revision_id: Optional[int]
    revision_timestamp: Optional[datetime]
    cache_time: datetime
    display_title: Optional[str] = None
    index_policy: Optional[str] = None      # "index" / "noindex" from magic words
    stale: bool = False


@dataclass(frozen=True)
class RenderStatus:
    output: Optional[RenderedOutput] = None
    error_key: Optional[str] = None
    # "timeout" / "contention" mark a degraded result; "error" a hard failure
    reason: Optional[str] = None

    @classmethod
    def good(cls, output: RenderedOutput) -> "RenderStatus":
        return cls(output=output)

    @classmethod
    def dirty(cls, output: RenderedOutput, reason: str) -> "RenderStatus":
        return cls(output=output, reason=reason)

    @classmethod
    def failed(cls, error_key: str, reason: str = "error") -> "RenderStatus":
        return cls(error_key=error_key, reason=reason)

    @property
    def ok(self) -> bool:
        return self.output is not None

    @property
    def is_degraded(self) -> bool:
        return self.ok and self.reason in ("timeout", "contention")


@dataclass(frozen=True)
class DiffResult:
    old_id: Optional[int]
    new_id: int
    groups: list[dict]                      # {"type": "equal"|"insert"|"delete", "lines": [...]}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Output plan
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class Notice:
    key: str
    params: tuple[Any, ...] = ()
    level: str = "warning"                  # "warning" boxes or "subtitle" lines


@dataclass
class OutputPlan:
    kind: PlanKind
    page: PageRef
    revision: Optional[RevisionRef] = None
    output: Optional[RenderedOutput] = None
    revision_id: Optional[int] = None
    revision_timestamp: Optional[datetime] = None
    notices: list[Notice] = field(default_factory=list)
    index_policy: Optional[str] = None
    follow_policy: Optional[str] = None
    status_code: int = 200
    redirect_url: Optional[str] = None
    error_key: Optional[str] = None
    error_params: tuple[Any, ...] = ()
    # None = default lifetime; 0 = do not cache on the client / CDN
    cdn_maxage: Optional[int] = None
    cache_write: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    body_only: bool = False
    section_edit_links: bool = True
    display_title: Optional[str] = None
    diff: Optional[DiffResult] = None
    log_entries: list[LogEntryRef] = field(default_factory=list)
    delete_reason: Optional[str] = None
    revision_count: Optional[int] = None

    @property
    def html(self) -> Optional[str]:
        return self.output.html if self.output else None

    def add_notice(self, key: str, *params: Any, level: str = "warning") -> None:
        self.notices.append(Notice(key, params, level))

    def notice_keys(self) -> list[str]:
        return [n.key for n in self.notices]


# -----------------------------------------------------------------------------
