"""
Tests for the markup renderer: formats, wikilinks, redirects, magic words
and the render timeout.  All tests use the renderer directly, no HTTP
round-trip needed.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone

import pytest

from tests.fakes import make_settings
from wikiview.services import renderer as renderer_mod
from wikiview.services.renderer import (
    MarkupRenderer,
    extract_magic_words,
    parse_redirect,
    render_html,
)
from wikiview.view.types import PageRef, RenderOptions, RevisionRef


def _revision(content: str, fmt: str = "markdown") -> RevisionRef:
    return RevisionRef(
        id=7,
        page_id=1,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        format=fmt,
        content=content,
    )


_PAGE = PageRef(id=1, namespace="Main", title="Foo", slug="foo", latest_rev_id=7)


# ── Formats ───────────────────────────────────────────────────────────────────

def test_markdown_heading():
    assert "<h1>Hello</h1>" in render_html("# Hello", "markdown")


def test_markdown_fenced_python_is_highlighted():
    html = render_html("```python\nx = 1\n```", "markdown")
    assert '<div class="highlight">' in html
    assert "<span" in html


def test_markdown_fenced_no_lang_produces_pre():
    html = render_html("```\nplain text\n```", "markdown")
    assert "<pre><code>plain text" in html


def test_rst_paragraph():
    html = render_html("Some *emphasis* here.", "rst")
    assert "<em>emphasis</em>" in html


def test_unknown_format_is_escaped():
    html = render_html("<script>x</script>", "text")
    assert html == "<pre>&lt;script&gt;x&lt;/script&gt;</pre>"


def test_external_links_open_in_new_tab():
    html = render_html("[site](https://example.com)", "markdown")
    assert 'target="_blank"' in html
    assert 'rel="noopener noreferrer"' in html


# ── Wikilinks ─────────────────────────────────────────────────────────────────

def test_wikilink_in_same_namespace():
    html = render_html("See [[Other Page]].", "markdown", namespace="Help")
    assert 'href="/wiki/Help/other-page"' in html
    assert ">Other Page</a>" in html


def test_wikilink_with_namespace_and_label():
    html = render_html("See [[Main:Front Door|the front]].", "markdown", namespace="Help")
    assert 'href="/wiki/Main/front-door"' in html
    assert ">the front</a>" in html


def test_rst_wikilink():
    html = render_html("See [[Other Page]].", "rst")
    assert 'href="/wiki/Main/other-page"' in html


# ── Redirects ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("content, target", [
    ("#REDIRECT [[Target]]", "Target"),
    ("\n\n  #redirect [[Help:Some Page]]\nrest", "Help:Some Page"),
    ("Text first\n#REDIRECT [[Target]]", None),
    ("", None),
])
def test_parse_redirect(content, target):
    assert parse_redirect(content) == target


# ── Magic words ───────────────────────────────────────────────────────────────

def test_noindex_magic_word():
    content, policy, title = extract_magic_words("__NOINDEX__\nBody")
    assert policy == "noindex"
    assert "__NOINDEX__" not in content
    assert title is None


def test_noindex_beats_index():
    _, policy, _ = extract_magic_words("__INDEX__ __NOINDEX__")
    assert policy == "noindex"


def test_displaytitle():
    content, policy, title = extract_magic_words("{{DISPLAYTITLE: Fancy ''Title''}}\nBody")
    assert title == "Fancy ''Title''"
    assert policy is None
    assert "DISPLAYTITLE" not in content


# ── MarkupRenderer ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_markup_renderer_reports_magic_words():
    renderer = MarkupRenderer(make_settings())
    status = await renderer.render(
        _PAGE, _revision("{{DISPLAYTITLE:Shiny}}\n__NOINDEX__\n# Body"), RenderOptions(),
    )
    assert status.ok
    assert not status.is_degraded
    assert "<h1>Body</h1>" in status.output.html
    assert status.output.display_title == "Shiny"
    assert status.output.index_policy == "noindex"
    assert status.output.revision_id == 7


@pytest.mark.asyncio
async def test_markup_renderer_timeout(monkeypatch):
    def slow(*args, **kwargs):
        time.sleep(0.5)
        return "<p>late</p>"

    monkeypatch.setattr(renderer_mod, "render_html", slow)
    renderer = MarkupRenderer(make_settings(render_timeout_seconds=0.05))
    status = await renderer.render(_PAGE, _revision("x"), RenderOptions())
    assert not status.ok
    assert status.error_key == "render-timeout"
    assert status.reason == "timeout"


@pytest.mark.asyncio
async def test_markup_renderer_error(monkeypatch):
    def broken(*args, **kwargs):
        raise ValueError("bad markup")

    monkeypatch.setattr(renderer_mod, "render_html", broken)
    status = await MarkupRenderer(make_settings()).render(_PAGE, _revision("x"), RenderOptions())
    assert not status.ok
    assert status.error_key == "render-error"
    assert status.reason == "error"
