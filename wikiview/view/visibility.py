#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Visibility gate
===============
Two questions about a revision whose text may carry a deletion flag:

``check_fetch``    may its content be loaded at all for this caller?
``check_display``  given the caller's rights and ``unhide``, is it shown now,
                   and which banner goes with it?

The display decision is a pure function of three booleans:

    deleted  rights  unhide  ->  allowed  mode
    no       -       -           yes      NONE
    yes      no      -           no       PERMISSION
    yes      yes     no          no       CONFIRM
    yes      yes     yes         yes      VIEWING_DELETED
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .interfaces import Authority
from .types import FetchFailure, FetchOutcome, Notice, PageRef, RevisionFlags, RevisionRef
from .urls import page_url


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class DisplayMode(str, enum.Enum):
    NONE = "none"
    PERMISSION = "permission"
    CONFIRM = "confirm"
    VIEWING_DELETED = "viewing-deleted"


@dataclass(frozen=True)
class DisplayDecision:
    allowed: bool
    mode: DisplayMode


def check_display(is_deleted: bool, has_rights: bool, unhide_requested: bool) -> DisplayDecision:
    if not is_deleted:
        return DisplayDecision(True, DisplayMode.NONE)
    if not has_rights:
        return DisplayDecision(False, DisplayMode.PERMISSION)
    if not unhide_requested:
        return DisplayDecision(False, DisplayMode.CONFIRM)
    return DisplayDecision(True, DisplayMode.VIEWING_DELETED)


# -----------------------------------------------------------------------------

class VisibilityGate:

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url

    # ── Fetch ────────────────────────────────────────────────────────────

    def check_fetch(
        self,
        page: PageRef,
        revision: RevisionRef,
        authority: Authority,
    ) -> FetchOutcome:
        if revision.is_deleted(RevisionFlags.TEXT) and not authority.can_view_deleted_text(revision):
            log.debug("no access to text of revision %s", revision.id)
            return FetchOutcome.fail(
                FetchFailure.PERMISSION, "deleted-text-denied", page.prefixed_key,
            )
        return FetchOutcome.success(revision)

    # ── Display ──────────────────────────────────────────────────────────

    def display_for(
        self,
        revision: RevisionRef,
        authority: Authority,
        unhide_requested: bool,
    ) -> DisplayDecision:
        is_deleted = revision.is_deleted(RevisionFlags.TEXT)
        has_rights = is_deleted and authority.can_view_deleted_text(revision)
        return check_display(is_deleted, has_rights, unhide_requested)

    def display_notice(
        self,
        page: PageRef,
        revision: RevisionRef,
        decision: DisplayDecision,
    ) -> Optional[Notice]:
        suppressed = revision.is_deleted(RevisionFlags.RESTRICTED)
        if decision.mode is DisplayMode.PERMISSION:
            return Notice("deleted-text-denied", (page.prefixed_key,))
        if decision.mode is DisplayMode.CONFIRM:
            link = page_url(page, self.base_url, oldid=revision.id, unhide=1)
            key = "suppressed-text-unhide" if suppressed else "deleted-text-unhide"
            return Notice(key, (link,))
        if decision.mode is DisplayMode.VIEWING_DELETED:
            key = "suppressed-text-view" if suppressed else "deleted-text-view"
            return Notice(key, (page.prefixed_key,))
        return None


# -----------------------------------------------------------------------------
