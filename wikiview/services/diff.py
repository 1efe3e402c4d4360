#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Text diff engine
================
Line diffs between two revisions using Python's difflib SequenceMatcher.

Each group: {"type": "equal"|"insert"|"delete", "lines": ["..."]}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import difflib
import logging
from typing import Optional

from wikiview.core.errors import Misconfigured
from wikiview.view.interfaces import DiffEngine, RevisionStore
from wikiview.view.types import DiffResult, PageRef, RevisionRef


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def diff_groups(a_text: str, b_text: str) -> list[dict]:
    a_lines = a_text.splitlines(keepends=True)
    b_lines = b_text.splitlines(keepends=True)

    groups = []
    matcher = difflib.SequenceMatcher(None, a_lines, b_lines)

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            groups.append({"type": "equal",  "lines": a_lines[i1:i2]})
        elif tag == "replace":
            groups.append({"type": "delete", "lines": a_lines[i1:i2]})
            groups.append({"type": "insert", "lines": b_lines[j1:j2]})
        elif tag == "delete":
            groups.append({"type": "delete", "lines": a_lines[i1:i2]})
        elif tag == "insert":
            groups.append({"type": "insert", "lines": b_lines[j1:j2]})

    return groups


# -----------------------------------------------------------------------------

class TextDiffEngine(DiffEngine):

    def __init__(self, store: RevisionStore) -> None:
        self.store = store

    async def _id_before(self, rev_id: Optional[int]) -> Optional[int]:
        if not rev_id:
            return None
        revision = await self.store.get_by_id(rev_id)
        if revision is None:
            return None
        previous = await self.store.get_previous(revision)
        return previous.id if previous else None

    async def map_diff_prev_next(
        self,
        page: PageRef,
        oldid: int,
        diff: str,
    ) -> tuple[Optional[int], Optional[int]]:
        """
        ``diff=prev``     oldid (or the latest) against the revision before it
        ``diff=next``     oldid against the revision after it
        ``diff=cur|0``    oldid (or the one before the latest) against the latest
        ``diff=<id>``     oldid (or the one before <id>) against <id>
        """
        diff = (diff or "prev").strip().lower()

        if diff == "prev":
            new_id = oldid or page.latest_rev_id
            return await self._id_before(new_id), new_id

        if diff == "next":
            old_id = oldid or page.latest_rev_id
            revision = await self.store.get_by_id(old_id) if old_id else None
            following = await self.store.get_next(revision) if revision else None
            # Nothing newer: compare the revision with itself
            return old_id, following.id if following else old_id

        if diff in ("cur", "0"):
            new_id = page.latest_rev_id
            return oldid or await self._id_before(new_id), new_id

        if not diff.isdigit():
            raise Misconfigured("bad-request", f"diff={diff}")

        new_id = int(diff)
        if not oldid:
            return await self._id_before(new_id), new_id
        # Always show older on the left
        return min(oldid, new_id), max(oldid, new_id)

    async def render(self, old: Optional[RevisionRef], new: RevisionRef) -> DiffResult:
        a_text = (old.content or "") if old is not None else ""
        groups = diff_groups(a_text, new.content or "")
        log.debug("diff %s..%s: %d groups", old.id if old else None, new.id, len(groups))
        return DiffResult(old_id=old.id if old else None, new_id=new.id, groups=groups)


# -----------------------------------------------------------------------------
