#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Page views
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NoticeResponse(BaseModel):
    key: str
    level: str
    message: str
    params: list[Any] = []


class ErrorResponse(BaseModel):
    key: str
    message: str
    params: list[Any] = []


class LogEntryResponse(BaseModel):
    log_type: str
    action: str
    title: str
    comment: str
    user: Optional[str] = None
    timestamp: datetime


class DiffResponse(BaseModel):
    old_id: Optional[int] = None
    new_id: int
    groups: list[dict]


# -----------------------------------------------------------------------------

class ViewResponse(BaseModel):
    """One ``OutputPlan``, as sent to the client."""
    kind: str
    namespace: str
    title: str
    display_title: Optional[str] = None
    exists: bool
    revision_id: Optional[int] = None
    revision_timestamp: Optional[datetime] = None
    html: Optional[str] = None
    stale: bool = False
    robots: str
    section_edit_links: bool = True
    body_only: bool = False
    error: Optional[ErrorResponse] = None
    notices: list[NoticeResponse] = []
    diff: Optional[DiffResponse] = None
    log_entries: list[LogEntryResponse] = []
    delete_reason: Optional[str] = None
    revision_count: Optional[int] = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DeleteForm(BaseModel):
    reason_list: str = Field(default="other", max_length=255)
    reason: str = Field(default="", max_length=512)
    suppress: bool = False
