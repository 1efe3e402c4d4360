#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User-facing message texts, keyed by the message keys that plans, notices and
``ViewError`` carry.  Positional ``{0}``, ``{1}`` placeholders.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any


MESSAGES: dict[str, str] = {
    # Missing pages / revisions
    "no-page-text": "There is currently no text in this page. You can create it.",
    "no-page-text-anon": "There is currently no text in this page. Log in or create it anonymously.",
    "no-page-text-nopermission": "There is currently no text in this page, and you do not have permission to create it.",
    "missing-revision": "The revision #{0} of the page could not be found.",
    "missing-revision-archived": "Revision #{0} of {2} ({1}) belongs to a deleted page. You can view it in the archive.",
    "diff-missing-revision": "One of the revisions of this diff (#{0}) could not be found.",
    "page-moved-or-deleted": "This page has been deleted or moved. The log is shown below.",

    # Deleted revisions
    "deleted-text-denied": "This revision of {0} has been deleted. You do not have permission to view it.",
    "deleted-text-unhide": "This revision has been deleted. You can view it: {0}",
    "suppressed-text-unhide": "This revision has been suppressed. You can view it: {0}",
    "deleted-text-view": "This revision of {0} has been deleted. You are viewing it because you are allowed to.",
    "suppressed-text-view": "This revision of {0} has been suppressed. You are viewing it because you are allowed to.",

    # Old revisions and redirects
    "old-revision": "Revision as of {0}",
    "current-revision": "Latest revision as of {0}",
    "redirected-from": "(Redirected from {0})",
    "redirect-page": "Redirect page",

    # Rendering
    "printable-deprecated": "The printable version is no longer supported; use your browser's print function instead.",
    "stale-render": "This page is being shown from an older cached copy because rendering did not finish ({0}).",
    "render-error": "The page could not be rendered.",
    "render-timeout": "Rendering the page took too long.",

    # Permissions / requests
    "permission-denied": "You do not have permission to {0} this page.",
    "bad-request": "The request was not understood: {0}",

    # Delete
    "cannot-delete": "The page {0} could not be deleted. It may have already been deleted by someone else.",
    "deleted-text": "\"{0}\" has been deleted.",
    "delete-history-warning": "Warning: the page you are about to delete has a history of {0} revisions.",
    "delete-too-big": "This page has more than {0} revisions; deleting it may disrupt the wiki.",
    "delete-auto-reason": "content was: \"{0}\"",
    "delete-auto-reason-blank": "page was blank",
}


# -----------------------------------------------------------------------------

def format_message(key: str, *params: Any) -> str:
    template = MESSAGES.get(key)
    if template is None:
        return f"<{key}>"
    return template.format(*params)


# -----------------------------------------------------------------------------
