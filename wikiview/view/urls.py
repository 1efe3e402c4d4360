#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Canonical page URLs: ``{base_url}/wiki/{namespace}/{slug}?query``."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from urllib.parse import quote, urlencode

from .types import PageRef


# -----------------------------------------------------------------------------

def slugify(text: str) -> str:
    """Convert a page title to a URL slug."""
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def title_from_slug(slug: str) -> str:
    return " ".join(part.capitalize() for part in slug.split("-") if part)


# -----------------------------------------------------------------------------

def page_url(page: PageRef, base_url: str = "", **query) -> str:
    url = f"{base_url.rstrip('/')}/wiki/{quote(page.namespace)}/{quote(page.slug)}"
    params = {k: v for k, v in query.items() if v is not None}
    if params:
        url += "?" + urlencode(params)
    return url


def title_url(namespace: str, title: str, base_url: str = "", **query) -> str:
    stub = PageRef(id=0, namespace=namespace, title=title, slug=slugify(title))
    return page_url(stub, base_url, **query)


# -----------------------------------------------------------------------------
