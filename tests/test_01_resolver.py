#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for mapping (page, oldid, direction) onto a revision."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from tests.fakes import FakeStore
from wikiview.view.resolver import RevisionResolver
from wikiview.view.types import (
    Direction,
    Missing,
    PageRef,
    RedirectInstruction,
    RenderCurrent,
    RenderOld,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _store() -> FakeStore:
    store = FakeStore()
    store.add_page(1, "Foo", [40, 55, 60, 100])
    store.add_page(2, "Bar", [70, 80])
    store.add_page(3, "Single", [90])
    return store


def _query(url: str) -> dict:
    return parse_qs(urlparse(url).query)


# =============================================================================
# Missing pages
# =============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("oldid", [0, 55, 999])
@pytest.mark.parametrize("direction", [Direction.NONE, Direction.PREV, Direction.NEXT])
async def test_page_without_revisions_is_missing(oldid, direction):
    store = _store()
    ghost = PageRef(id=0, namespace="Main", title="Ghost", slug="ghost")
    result = await RevisionResolver(store).resolve(ghost, oldid, direction)
    assert isinstance(result, Missing)
    assert result.page == ghost


@pytest.mark.asyncio
async def test_missing_keeps_requested_id():
    store = _store()
    ghost = PageRef(id=0, namespace="Main", title="Ghost", slug="ghost")
    result = await RevisionResolver(store).resolve(ghost, 55)
    assert result.missing_rev_id == 55


# =============================================================================
# Plain lookups
# =============================================================================

@pytest.mark.asyncio
async def test_no_oldid_renders_current():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1])
    assert isinstance(result, RenderCurrent)
    assert result.revision.id == 100


@pytest.mark.asyncio
async def test_valid_oldid_renders_exactly_that_revision():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 55)
    assert isinstance(result, RenderOld)
    assert result.revision.id == 55
    assert result.page.id == 1


@pytest.mark.asyncio
async def test_explicit_current_id_is_still_an_old_view():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 100)
    assert isinstance(result, RenderOld)
    assert result.revision.is_current


@pytest.mark.asyncio
async def test_latest_id_reuses_current_revision():
    store = _store()
    with patch.object(store, "get_by_id", new_callable=AsyncMock) as get_by_id:
        result = await RevisionResolver(store).resolve(store.pages[1], 100)
    get_by_id.assert_not_awaited()
    assert result.revision == store.revisions[100]


@pytest.mark.asyncio
async def test_unknown_oldid_is_missing():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 12345)
    assert isinstance(result, Missing)
    assert result.missing_rev_id == 12345
    assert result.page.id == 1


@pytest.mark.asyncio
async def test_oldid_of_another_page_switches_page():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 70)
    assert isinstance(result, RenderOld)
    assert result.page.title == "Bar"
    assert result.revision.id == 70


# =============================================================================
# direction=next
# =============================================================================

@pytest.mark.asyncio
async def test_next_redirects_to_successor():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 55, Direction.NEXT)
    assert isinstance(result, RedirectInstruction)
    assert _query(result.url)["oldid"] == ["60"]
    assert result.url.startswith("/wiki/Main/foo")


@pytest.mark.asyncio
async def test_next_from_current_redirects_to_plain_page():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 100, Direction.NEXT)
    assert isinstance(result, RedirectInstruction)
    assert _query(result.url) == {"redirect": ["no"]}


@pytest.mark.asyncio
async def test_next_without_oldid_redirects():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 0, Direction.NEXT)
    assert isinstance(result, RedirectInstruction)
    assert "oldid" not in _query(result.url)


@pytest.mark.asyncio
async def test_next_with_unknown_oldid_redirects():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 12345, Direction.NEXT)
    assert isinstance(result, RedirectInstruction)


@pytest.mark.asyncio
async def test_next_follows_owning_page():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 70, Direction.NEXT)
    assert isinstance(result, RedirectInstruction)
    assert result.page.title == "Bar"
    assert result.url.startswith("/wiki/Main/bar")
    assert _query(result.url)["oldid"] == ["80"]


# =============================================================================
# direction=prev
# =============================================================================

@pytest.mark.asyncio
async def test_prev_redirects_to_predecessor():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 60, Direction.PREV)
    assert isinstance(result, RedirectInstruction)
    assert _query(result.url)["oldid"] == ["55"]


@pytest.mark.asyncio
async def test_prev_from_earliest_is_same_as_no_direction():
    store = _store()
    resolver = RevisionResolver(store)
    with_prev = await resolver.resolve(store.pages[1], 40, Direction.PREV)
    without = await resolver.resolve(store.pages[1], 40)
    assert with_prev == without
    assert isinstance(with_prev, RenderOld)


@pytest.mark.asyncio
async def test_prev_on_single_revision_page_without_oldid():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[3], 0, Direction.PREV)
    assert isinstance(result, RenderCurrent)
    assert result.revision.id == 90


@pytest.mark.asyncio
async def test_prev_with_unknown_oldid_is_missing():
    store = _store()
    result = await RevisionResolver(store).resolve(store.pages[1], 12345, Direction.PREV)
    assert isinstance(result, Missing)


# =============================================================================
# Direction parsing
# =============================================================================

def test_direction_parse():
    assert Direction.parse("next") is Direction.NEXT
    assert Direction.parse(" PREV ") is Direction.PREV
    assert Direction.parse(None) is Direction.NONE
    assert Direction.parse("sideways") is Direction.NONE


# -----------------------------------------------------------------------------
