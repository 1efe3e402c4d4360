#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
View error taxonomy
===================
NotFound          page or revision absent
PermissionDenied  read or deleted-text access refused
RenderFailed      the renderer gave up (timeout, contention, parse error)
Misconfigured     inconsistent request state (bad direction, bad diff id)

None of these ever escape the controller's public entry points: they are
turned into an error plan where they are caught.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any


# -----------------------------------------------------------------------------

class ViewError(Exception):
    """Base class.  ``key`` is a message key from ``wikiview.view.messages``."""

    status_code: int = 500
    key: str = "view-error"

    def __init__(self, key: str | None = None, *params: Any) -> None:
        if key is not None:
            self.key = key
        self.params: tuple[Any, ...] = params
        super().__init__(f"{self.key}: {', '.join(str(p) for p in params)}")


# -----------------------------------------------------------------------------

class NotFound(ViewError):
    status_code = 404
    key = "missing-revision"


class PermissionDenied(ViewError):
    status_code = 403
    key = "permission-denied"


class RenderFailed(ViewError):
    status_code = 503
    key = "render-error"

    def __init__(self, key: str | None = None, *params: Any, reason: str = "error") -> None:
        super().__init__(key, *params)
        # "timeout", "contention" or "error"
        self.reason = reason


class Misconfigured(ViewError):
    status_code = 400
    key = "bad-request"


# -----------------------------------------------------------------------------
