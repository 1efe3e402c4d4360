#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Request-scoped state threaded through one page view."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field

from .hooks import PASS, HookOutcome
from .interfaces import Authority
from .types import RenderOptions, ViewRequest


# -----------------------------------------------------------------------------

@dataclass
class ViewContext:
    request: ViewRequest
    authority: Authority
    options: RenderOptions = field(default_factory=RenderOptions)

    @classmethod
    def for_request(cls, request: ViewRequest, authority: Authority) -> "ViewContext":
        return cls(request, authority, RenderOptions(printable=request.printable))


@dataclass(frozen=True)
class CacheState:
    use_render_cache: bool = True
    hook: HookOutcome = PASS
    try_file_cache: bool = False


# -----------------------------------------------------------------------------
