#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
SQL revision store
==================
``RevisionStore`` over the ``pages`` / ``revisions`` / ``archive`` /
``log_entries`` tables.  Lookups return content-free ``RevisionRef``
snapshots; the text is read only by ``load_content``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiview.models import ArchivedRevision, LogEntry, Namespace, Page, RenderCacheEntry, Revision, User
from wikiview.view.interfaces import RevisionStore
from wikiview.view.types import LogEntryRef, PageRef, RevisionFlags, RevisionRef


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Row -> snapshot helpers
# -----------------------------------------------------------------------------

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def page_ref(page: Page, namespace: str) -> PageRef:
    return PageRef(
        id=page.id,
        namespace=namespace,
        title=page.title,
        slug=page.slug,
        latest_rev_id=page.latest_rev_id,
        touched=as_utc(page.touched),
        is_redirect=page.is_redirect,
        redirect_target=page.redirect_target,
    )


def revision_ref(
    rev: Revision,
    latest_rev_id: Optional[int],
    author_name: Optional[str] = None,
) -> RevisionRef:
    return RevisionRef(
        id=rev.id,
        page_id=rev.page_id,
        timestamp=as_utc(rev.created_at),
        author_id=rev.author_id,
        author_name=author_name,
        deleted=rev.deleted,
        is_current=rev.id == latest_rev_id,
        format=rev.format,
        comment=rev.comment,
    )


# -----------------------------------------------------------------------------

class SqlRevisionStore(RevisionStore):

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Pages ────────────────────────────────────────────────────────────

    async def get_page_by_id(self, page_id: int) -> Optional[PageRef]:
        result = await self.db.execute(
            select(Page, Namespace.name)
            .join(Namespace, Namespace.id == Page.namespace_id)
            .where(Page.id == page_id)
        )
        row = result.first()
        if row is None:
            return None
        page, ns_name = row
        return page_ref(page, ns_name)

    # ── Revisions ────────────────────────────────────────────────────────

    async def _ref(self, rev: Optional[Revision]) -> Optional[RevisionRef]:
        if rev is None:
            return None
        latest = await self.db.scalar(select(Page.latest_rev_id).where(Page.id == rev.page_id))
        author_name = None
        if rev.author_id:
            author_name = await self.db.scalar(select(User.username).where(User.id == rev.author_id))
        return revision_ref(rev, latest, author_name)

    def _select(self):
        return select(Revision)

    async def get_current(self, page: PageRef) -> Optional[RevisionRef]:
        if not page.id:
            return None
        latest = await self.db.scalar(select(Page.latest_rev_id).where(Page.id == page.id))
        if not latest:
            return None
        result = await self.db.execute(self._select().where(Revision.id == latest))
        return await self._ref(result.scalar_one_or_none())

    async def get_by_id(self, rev_id: int) -> Optional[RevisionRef]:
        result = await self.db.execute(self._select().where(Revision.id == rev_id))
        return await self._ref(result.scalar_one_or_none())

    async def get_next(self, revision: RevisionRef) -> Optional[RevisionRef]:
        result = await self.db.execute(
            self._select()
            .where(Revision.page_id == revision.page_id, Revision.id > revision.id)
            .order_by(Revision.id.asc())
            .limit(1)
        )
        return await self._ref(result.scalar_one_or_none())

    async def get_previous(self, revision: RevisionRef) -> Optional[RevisionRef]:
        result = await self.db.execute(
            self._select()
            .where(Revision.page_id == revision.page_id, Revision.id < revision.id)
            .order_by(Revision.id.desc())
            .limit(1)
        )
        return await self._ref(result.scalar_one_or_none())

    async def load_content(self, revision: RevisionRef) -> str:
        content = await self.db.scalar(select(Revision.content).where(Revision.id == revision.id))
        return content or ""

    async def count_revisions(self, page: PageRef) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Revision).where(Revision.page_id == page.id)
        )
        return result.scalar_one()

    # ── Archive ──────────────────────────────────────────────────────────

    async def get_archived(self, rev_id: int) -> Optional[RevisionRef]:
        result = await self.db.execute(
            select(ArchivedRevision).where(ArchivedRevision.rev_id == rev_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return RevisionRef(
            id=row.rev_id,
            page_id=row.page_id,
            timestamp=as_utc(row.created_at),
            author_id=row.author_id,
            deleted=row.deleted,
            format=row.format,
            comment=row.comment,
        )

    async def delete_page(
        self,
        page: PageRef,
        reason: str,
        suppress: bool = False,
        actor_id: Optional[str] = None,
    ) -> bool:
        row = await self.db.get(Page, page.id)
        if row is None or not row.latest_rev_id:
            log.info("page %s already deleted", page.prefixed_title)
            return False

        revisions = (await self.db.execute(
            select(Revision).where(Revision.page_id == row.id).order_by(Revision.id)
        )).scalars().all()

        extra = int(RevisionFlags.all_hidden() | RevisionFlags.RESTRICTED) if suppress else 0
        for rev in revisions:
            self.db.add(ArchivedRevision(
                rev_id=rev.id,
                page_id=row.id,
                namespace=page.namespace,
                title=page.title,
                content=rev.content,
                format=rev.format,
                author_id=rev.author_id,
                comment=rev.comment,
                deleted=rev.deleted | extra,
                created_at=rev.created_at,
            ))

        await self.db.execute(delete(RenderCacheEntry).where(RenderCacheEntry.page_id == row.id))
        await self.db.execute(delete(Revision).where(Revision.page_id == row.id))
        # Keep the page row for its id; without a latest revision it no longer exists
        row.latest_rev_id = None
        row.is_redirect = False
        row.redirect_target = None
        row.touched = datetime.now(tz=timezone.utc)

        self.db.add(LogEntry(
            log_type="suppress" if suppress else "delete",
            action="delete",
            namespace=page.namespace,
            title=page.title,
            page_id=row.id,
            user_id=actor_id,
            comment=reason,
        ))
        await self.db.flush()
        log.info("archived %d revisions of %s", len(revisions), page.prefixed_title)
        return True

    # ── Logs ─────────────────────────────────────────────────────────────

    async def recent_log_entries(
        self,
        page: PageRef,
        log_types: tuple[str, ...] = ("delete", "move", "protect"),
        limit: int = 10,
    ) -> list[LogEntryRef]:
        result = await self.db.execute(
            select(LogEntry, User.username)
            .outerjoin(User, User.id == LogEntry.user_id)
            .where(
                LogEntry.namespace == page.namespace,
                LogEntry.title == page.title,
                LogEntry.log_type.in_(log_types),
            )
            .order_by(LogEntry.id.desc())
            .limit(limit)
        )
        return [
            LogEntryRef(
                log_type=entry.log_type,
                action=entry.action,
                title=f"{entry.namespace}:{entry.title}",
                comment=entry.comment,
                user_name=username,
                timestamp=as_utc(entry.created_at),
            )
            for entry, username in result.all()
        ]


# -----------------------------------------------------------------------------
