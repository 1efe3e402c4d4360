#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML file cache — whole rendered pages on disk for anonymous visitors.

Files live at ``<file_cache_dir>/<namespace>/<slug>.html``.  An entry is
good while it is newer than the page's ``touched`` time.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from wikiview.core.config import Settings, get_settings
from wikiview.view.interfaces import FileCache
from wikiview.view.types import PageRef


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class HtmlFileCache(FileCache):

    def __init__(self, settings: Optional[Settings] = None, root: Optional[Path] = None) -> None:
        self.settings = settings or get_settings()
        self.root = root or self.settings.file_cache_dir_resolved

    def path_for(self, page: PageRef) -> Path:
        # Slugs are [\w-] only, so they are safe as file names
        return self.root / page.namespace / f"{page.slug}.html"

    # -------------------------------------------------------------------------

    async def is_cache_good(self, page: PageRef) -> bool:
        path = self.path_for(page)
        if not await aiofiles.os.path.exists(path):
            return False
        mtime = datetime.fromtimestamp((await aiofiles.os.stat(path)).st_mtime, tz=timezone.utc)
        if page.touched is not None and mtime <= page.touched:
            log.debug("file cache for %s is older than the page", page.prefixed_title)
            return False
        return True

    async def load(self, page: PageRef) -> Optional[str]:
        path = self.path_for(page)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            # Removed between the check and the read: a plain miss
            return None

    async def save(self, page: PageRef, html: str) -> None:
        path = self.path_for(page)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(html)
        log.debug("saved file cache for %s", page.prefixed_title)


# -----------------------------------------------------------------------------
