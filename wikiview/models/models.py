#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for WikiView
=======================

Tables
------
users           — accounts and the groups they belong to
namespaces      — wiki namespaces (Main, Help, ...)
pages           — wiki pages within a namespace, pointing at their latest revision
revisions       — append-only revision history (one row per save)
archive         — revisions of deleted pages
render_cache    — rendered HTML keyed by page, revision and render options
log_entries     — delete / move / protect log

Pages and revisions use integer ids: ``oldid`` in URLs is a revision id and
ids grow with time.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Index, Integer,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikiview.core.database import Base


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36), works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class User(Base):
    __tablename__ = "users"

    id:           Mapped[str]  = _uuid_col(primary_key=True)
    username:     Mapped[str]  = mapped_column(String(64),  unique=True, nullable=False, index=True)
    display_name: Mapped[str]  = mapped_column(String(128), nullable=False, default="")
    is_active:    Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # "sysop" group: delete pages, view deleted text
    is_admin:     Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # "suppress" group: hide revisions from sysops too
    can_suppress: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    revisions: Mapped[list["Revision"]] = relationship(back_populates="author")

    def to_dict(self) -> dict:
        return {
            "id":           self.id,
            "username":     self.username,
            "display_name": self.display_name,
            "is_admin":     self.is_admin,
            "can_suppress": self.can_suppress,
            "is_active":    self.is_active,
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# namespaces
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Namespace(Base):
    """
    Wiki namespace.  The default content format for new pages is stored here
    but can be overridden per-revision.
    """
    __tablename__ = "namespaces"

    id:             Mapped[str]        = _uuid_col(primary_key=True)
    name:           Mapped[str]        = mapped_column(String(128), unique=True, nullable=False, index=True)
    description:    Mapped[str]        = mapped_column(Text, default="", nullable=False)
    default_format: Mapped[str]        = mapped_column(String(16), default="markdown", nullable=False)
    created_at:     Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    pages: Mapped[list["Page"]] = relationship(back_populates="namespace", cascade="all, delete-orphan")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("namespace_id", "slug", name="uq_pages_ns_slug"),
        {"sqlite_autoincrement": True},
    )

    id:              Mapped[int]        = mapped_column(Integer, primary_key=True, autoincrement=True)
    namespace_id:    Mapped[str]        = mapped_column(String(36), ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False, index=True)
    title:           Mapped[str]        = mapped_column(String(512), nullable=False, index=True)
    slug:            Mapped[str]        = mapped_column(String(512), nullable=False, index=True)
    # Null until the first revision is saved, and again after deletion
    latest_rev_id:   Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Bumped on every change that invalidates rendered output
    touched:         Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)
    is_redirect:     Mapped[bool]       = mapped_column(Boolean, default=False, nullable=False)
    redirect_target: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at:      Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    namespace: Mapped["Namespace"]      = relationship(back_populates="pages")
    revisions: Mapped[list["Revision"]] = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="Revision.id",
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# revisions  (append-only)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Revision(Base):
    __tablename__ = "revisions"
    __table_args__ = (
        Index("ix_revisions_page_id_id", "page_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id:         Mapped[int]        = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id:    Mapped[int]        = mapped_column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    content:    Mapped[str]        = mapped_column(Text, nullable=False, default="")
    # "markdown", "rst" or "text"; stored per-revision so format can change over time
    format:     Mapped[str]        = mapped_column(String(16), nullable=False, default="markdown")
    author_id:  Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    comment:    Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    # RevisionFlags bit field
    deleted:    Mapped[int]        = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    page:   Mapped["Page"]        = relationship(back_populates="revisions")
    author: Mapped["User | None"] = relationship(back_populates="revisions")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# archive  (revisions of deleted pages)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ArchivedRevision(Base):
    __tablename__ = "archive"

    id:          Mapped[int]        = mapped_column(Integer, primary_key=True, autoincrement=True)
    # The revision id the row had before deletion; oldid links keep using it
    rev_id:      Mapped[int]        = mapped_column(Integer, nullable=False, unique=True, index=True)
    page_id:     Mapped[int]        = mapped_column(Integer, nullable=False, index=True)
    namespace:   Mapped[str]        = mapped_column(String(128), nullable=False)
    title:       Mapped[str]        = mapped_column(String(512), nullable=False)
    content:     Mapped[str]        = mapped_column(Text, nullable=False, default="")
    format:      Mapped[str]        = mapped_column(String(16), nullable=False, default="markdown")
    author_id:   Mapped[str | None] = mapped_column(String(36), nullable=True)
    comment:     Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    deleted:     Mapped[int]        = mapped_column(Integer, default=0, nullable=False)
    created_at:  Mapped[datetime]   = mapped_column(DateTime(timezone=True), nullable=False)
    archived_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# render_cache
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderCacheEntry(Base):
    __tablename__ = "render_cache"
    __table_args__ = (
        UniqueConstraint("page_id", "rev_id", "options_key", name="uq_render_cache_key"),
    )

    id:            Mapped[int]        = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id:       Mapped[int]        = mapped_column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    rev_id:        Mapped[int]        = mapped_column(Integer, nullable=False)
    options_key:   Mapped[str]        = mapped_column(String(255), nullable=False)
    html:          Mapped[str]        = mapped_column(Text, nullable=False)
    rev_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    display_title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    index_policy:  Mapped[str | None] = mapped_column(String(16), nullable=True)
    cached_at:     Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# log_entries
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class LogEntry(Base):
    __tablename__ = "log_entries"
    __table_args__ = (
        Index("ix_log_entries_target", "namespace", "title"),
    )

    id:         Mapped[int]        = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_type:   Mapped[str]        = mapped_column(String(32), nullable=False)
    action:     Mapped[str]        = mapped_column(String(32), nullable=False)
    namespace:  Mapped[str]        = mapped_column(String(128), nullable=False)
    title:      Mapped[str]        = mapped_column(String(512), nullable=False)
    page_id:    Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id:    Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    comment:    Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    created_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    user: Mapped["User | None"] = relationship()
