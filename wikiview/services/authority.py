#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User authority
==============
``Authority`` for one request, built from an optional ``User`` row.

Rights come from the groups a caller is in:

    *         settings.anonymous_rights (everybody, logged in or not)
    user      read, edit, createpage
    sysop     delete, bigdelete, deletedtext, deletedhistory   (User.is_admin)
    suppress  suppressrevision, viewsuppressed                 (User.can_suppress)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from wikiview.core.config import Settings, get_settings
from wikiview.models import User
from wikiview.view.interfaces import Authority
from wikiview.view.types import PageRef, RevisionFlags, RevisionRef


GROUP_RIGHTS: dict[str, frozenset[str]] = {
    "user": frozenset({"read", "edit", "createpage"}),
    "sysop": frozenset({"delete", "bigdelete", "deletedtext", "deletedhistory"}),
    "suppress": frozenset({"suppressrevision", "viewsuppressed"}),
}

# Page action -> right it needs
_ACTION_RIGHTS = {
    "edit": "edit",
    "create": "createpage",
    "delete": "delete",
}


# -----------------------------------------------------------------------------

class UserAuthority(Authority):

    def __init__(self, user: Optional[User] = None, settings: Optional[Settings] = None) -> None:
        self.user = user
        self.settings = settings or get_settings()
        self.rights = self._collect_rights()

    def _collect_rights(self) -> frozenset[str]:
        rights = set(self.settings.anonymous_rights)
        if self.user is not None:
            rights |= GROUP_RIGHTS["user"]
            if self.user.is_admin:
                rights |= GROUP_RIGHTS["sysop"]
            if self.user.can_suppress:
                rights |= GROUP_RIGHTS["suppress"]
        return frozenset(rights)

    # -------------------------------------------------------------------------

    @property
    def is_registered(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def name(self) -> Optional[str]:
        return self.user.username if self.user else None

    def is_allowed(self, right: str) -> bool:
        return right in self.rights

    def can_read(self, page: PageRef) -> bool:
        if not self.is_allowed("read"):
            return False
        if self.user is None and page.namespace in self.settings.read_restricted_namespaces:
            return False
        return True

    def can(self, action: str, page: PageRef) -> bool:
        right = _ACTION_RIGHTS.get(action)
        if right is None:
            raise ValueError(f"unknown page action {action!r}")
        return self.can_read(page) and self.is_allowed(right)

    def can_view_deleted_text(self, revision: RevisionRef) -> bool:
        if revision.is_deleted(RevisionFlags.RESTRICTED):
            return self.is_allowed("viewsuppressed")
        return self.is_allowed("deletedtext")

    def __repr__(self) -> str:
        return f"<UserAuthority {self.name or 'anonymous'}>"


# -----------------------------------------------------------------------------
