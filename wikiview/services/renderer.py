#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders revision content to HTML.

Supported formats:
  - markdown  : rendered via mistune (with extras: tables, fenced code, strikethrough)
  - rst       : rendered via docutils
  - anything else is shown escaped inside <pre>

Both markup formats support [[WikiLink]] style inter-page links which are
rewritten to the correct wiki URL before final HTML output.

Page-level magic words are stripped from the source and reported on the
``RenderedOutput``:

  ``__NOINDEX__`` / ``__INDEX__``   robot policy requested by the page
  ``{{DISPLAYTITLE:Text}}``         title shown instead of the page title
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import html as _html
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from wikiview.core.config import Settings, get_settings
from wikiview.view.interfaces import Renderer
from wikiview.view.types import PageRef, RenderedOutput, RenderOptions, RenderStatus, RevisionRef
from wikiview.view.urls import slugify


log = logging.getLogger(__name__)

# Bump this whenever the render pipeline changes so stale cached HTML is
# automatically discarded and re-rendered on next page view.
RENDERER_VERSION = 12


# -----------------------------------------------------------------------------
# Markdown renderer via mistune
# -----------------------------------------------------------------------------

def _highlight_code(code: str, lang: str) -> str:
    """Highlight *code* using Pygments.  Falls back to plain <pre><code> on unknown language."""
    from pygments import highlight
    from pygments.formatters import HtmlFormatter
    from pygments.lexers import TextLexer, get_lexer_by_name
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_by_name(lang.strip(), stripall=True) if lang.strip() else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
    return highlight(code, lexer, formatter)


def _make_md_renderer():
    import mistune
    from mistune.plugins.formatting import strikethrough
    from mistune.plugins.table import table
    from mistune.plugins.url import url

    class _HighlightRenderer(mistune.HTMLRenderer):
        def codespan(self, code: str) -> str:
            return f'<code>{_html.escape(code)}</code>'

        def block_code(self, code: str, **kwargs) -> str:
            info = kwargs.get('info') or ''
            lang = info.split()[0] if info else ''
            if lang:
                return _highlight_code(code, lang)
            return f'<pre><code>{_html.escape(code)}</code></pre>'

    md = mistune.create_markdown(
        renderer=_HighlightRenderer(escape=False),
        plugins=[table, strikethrough, url],
    )
    return md


_md_renderer = None


def _get_md_renderer():
    global _md_renderer
    if _md_renderer is None:
        _md_renderer = _make_md_renderer()
    return _md_renderer


# -----------------------------------------------------------------------------
# RST renderer via docutils
# -----------------------------------------------------------------------------

def _render_rst(content: str) -> str:
    from docutils.core import publish_parts
    parts = publish_parts(
        source=content,
        writer="html5",
        settings_overrides={
            "halt_level": 5,
            "report_level": 5,
            "input_encoding": "unicode",
            "output_encoding": "unicode",
            "syntax_highlight": "short",
            "doctitle_xform": False,
            "sectsubtitle_xform": False,
        },
    )
    return parts["body"]


# -----------------------------------------------------------------------------
# WikiLink rewriting  [[Page Title]] → /wiki/Namespace/page-title
# -----------------------------------------------------------------------------

_WIKILINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")


def _wikilink_target(target: str, namespace: str, base_url: str) -> str:
    if ":" in target:
        ns, title = target.split(":", 1)
        if ns.strip() and title.strip():
            namespace, target = ns.strip(), title
    return f"{base_url}/wiki/{namespace}/{slugify(target)}"


def _preprocess_wikilinks_md(content: str, namespace: str, base_url: str = "") -> str:
    def _replace(m: re.Match) -> str:
        target = m.group(1).strip()
        label  = (m.group(2) or target).strip()
        return f'[{label}]({_wikilink_target(target, namespace, base_url)})'

    return _WIKILINK_RE.sub(_replace, content)


def _preprocess_wikilinks_rst(content: str, namespace: str, base_url: str = "") -> str:
    def _replace(m: re.Match) -> str:
        target = m.group(1).strip()
        label  = (m.group(2) or target).strip()
        return f'`{label} <{_wikilink_target(target, namespace, base_url)}>`_'

    return _WIKILINK_RE.sub(_replace, content)


# -----------------------------------------------------------------------------
# Redirect detection
# -----------------------------------------------------------------------------

_REDIRECT_RE = re.compile(r"^\s*#REDIRECT\s*\[\[([^\]]+)\]\]", re.IGNORECASE)


def parse_redirect(content: str) -> str | None:
    """Return the redirect target title if content is a redirect page, else None.

    Matches ``#REDIRECT [[Target Title]]`` on the first non-blank line.
    """
    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        m = _REDIRECT_RE.match(line)
        if m:
            return m.group(1).strip()
        break  # first non-blank line didn't match, not a redirect
    return None


# -----------------------------------------------------------------------------
# Magic words
# -----------------------------------------------------------------------------

_NOINDEX_RE = re.compile(r"__NOINDEX__")
_INDEX_RE = re.compile(r"__INDEX__")
_DISPLAYTITLE_RE = re.compile(r"\{\{\s*DISPLAYTITLE\s*:\s*([^}]+?)\s*\}\}", re.IGNORECASE)


def extract_magic_words(content: str) -> tuple[str, Optional[str], Optional[str]]:
    """Strip page-level magic words.

    Returns ``(content, index_policy, display_title)``; ``__NOINDEX__`` wins
    when a page carries both index words.
    """
    index_policy = None
    if _NOINDEX_RE.search(content):
        index_policy = "noindex"
    elif _INDEX_RE.search(content):
        index_policy = "index"
    content = _INDEX_RE.sub("", _NOINDEX_RE.sub("", content))

    display_title = None
    m = _DISPLAYTITLE_RE.search(content)
    if m:
        display_title = m.group(1)
        content = _DISPLAYTITLE_RE.sub("", content)
    return content, index_policy, display_title


# -----------------------------------------------------------------------------
# External link post-processor
# -----------------------------------------------------------------------------

_EXT_LINK_RE = re.compile(
    r'<a\s([^>]*href=["\'](?:https?://|//)[^"\'>][^>]*)>',
    re.IGNORECASE,
)


def _add_external_link_targets(html: str) -> str:
    """Add target="_blank" rel="noopener noreferrer" to all external <a> tags."""
    def _patch(m: re.Match) -> str:
        attrs = m.group(1)
        if "target=" in attrs:
            return m.group(0)
        return f'<a {attrs} target="_blank" rel="noopener noreferrer">'
    return _EXT_LINK_RE.sub(_patch, html)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render_html(content: str, fmt: str, namespace: str = "Main", base_url: str = "") -> str:
    """
    Render *content* to HTML.

    Parameters
    ----------
    content     : raw source text, magic words already stripped
    fmt         : "markdown" or "rst"; anything else is shown as plain text
    namespace   : wiki namespace name (used for wikilink URL construction)
    base_url    : site base URL prefix for wikilinks
    """
    fmt = fmt.lower()
    if fmt == "markdown":
        html = _get_md_renderer()(_preprocess_wikilinks_md(content, namespace, base_url))
    elif fmt == "rst":
        html = _render_rst(_preprocess_wikilinks_rst(content, namespace, base_url))
    else:
        html = f"<pre>{_html.escape(content)}</pre>"
    return _add_external_link_targets(html)


# -----------------------------------------------------------------------------
# Renderer collaborator
# -----------------------------------------------------------------------------

class MarkupRenderer(Renderer):
    """Runs ``render_html`` in a worker thread under ``render_timeout_seconds``."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    async def render(
        self,
        page: PageRef,
        revision: RevisionRef,
        options: RenderOptions,
    ) -> RenderStatus:
        content, index_policy, display_title = extract_magic_words(revision.content or "")
        try:
            html = await asyncio.wait_for(
                asyncio.to_thread(
                    render_html, content, revision.format, page.namespace, self.settings.base_url,
                ),
                timeout=self.settings.render_timeout_seconds,
            )
        except asyncio.TimeoutError:
            log.warning(
                "render of %s revision %s timed out after %ss",
                page.prefixed_title, revision.id, self.settings.render_timeout_seconds,
            )
            return RenderStatus.failed("render-timeout", reason="timeout")
        except Exception:
            log.exception("render of %s revision %s failed", page.prefixed_title, revision.id)
            return RenderStatus.failed("render-error")

        return RenderStatus.good(RenderedOutput(
            html=html,
            revision_id=revision.id,
            revision_timestamp=revision.timestamp,
            cache_time=datetime.now(tz=timezone.utc),
            display_title=display_title,
            index_policy=index_policy,
        ))


# -----------------------------------------------------------------------------
