#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Logging setup — plain ``logging``, one ``log = logging.getLogger(__name__)``
per module.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from .config import get_settings


_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


# -----------------------------------------------------------------------------

def configure_logging(level: int | None = None) -> None:
    """Configure the root logger once; DEBUG when ``Settings.debug`` is on."""
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_FORMAT)
    else:
        root.setLevel(level)
    logging.getLogger("wikiview").setLevel(level)


# -----------------------------------------------------------------------------
