#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
View-header interceptors.

Handlers are tried in registration order before any default view logic.  A
handler either passes, or claims the view (optionally supplying the output).
Any handler may also switch off the render cache for the rest of the request.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .types import RenderedOutput

if TYPE_CHECKING:
    from .context import ViewContext


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class HookOutcome:
    handled: bool = False
    output: Optional[RenderedOutput] = None
    use_render_cache: bool = True


PASS = HookOutcome()


# -----------------------------------------------------------------------------

class ViewHeaderHandler(ABC):

    @abstractmethod
    async def on_view_header(self, ctx: "ViewContext") -> HookOutcome:
        ...


# -----------------------------------------------------------------------------

async def run_view_header_hooks(
    handlers: Sequence[ViewHeaderHandler],
    ctx: "ViewContext",
) -> HookOutcome:
    use_cache = True
    for handler in handlers:
        outcome = await handler.on_view_header(ctx)
        use_cache = use_cache and outcome.use_render_cache
        if outcome.handled:
            log.debug("view header handled by %s", type(handler).__name__)
            return HookOutcome(True, outcome.output, use_cache)
    return HookOutcome(False, None, use_cache)


# -----------------------------------------------------------------------------
