#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for robot (index / follow) policies and CDN lifetimes."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import timedelta

import pytest

from tests.fakes import BASE_TIME, FakeStore, make_settings, rendered
from wikiview.view.controller import adapt_cdn_ttl, split_target
from wikiview.view.policy import (
    RobotPolicy,
    format_robot_policy,
    get_robot_policy,
    parse_robot_policy,
)
from wikiview.view.types import PageRef, ViewRequest


# =============================================================================
# Parse / format
# =============================================================================

@pytest.mark.parametrize("text", ["noindex,follow", "follow,noindex", " follow , NOINDEX "])
def test_parse_is_order_independent(text):
    assert parse_robot_policy(text) == RobotPolicy("noindex", "follow")
    assert format_robot_policy(parse_robot_policy(text)) == "noindex,follow"


def test_parse_ignores_unknown_tokens():
    assert parse_robot_policy("noarchive,nofollow") == RobotPolicy(None, "nofollow")


def test_parse_empty():
    assert parse_robot_policy("") == RobotPolicy()
    assert parse_robot_policy(None) == RobotPolicy()


def test_merge_right_hand_side_wins():
    merged = RobotPolicy("index", "follow").merge(RobotPolicy(index="noindex"))
    assert str(merged) == "noindex,follow"


# =============================================================================
# get_robot_policy
# =============================================================================

def _page() -> PageRef:
    return FakeStore().add_page(1, "Foo", [10, 20])


def test_missing_page_is_noindex_nofollow():
    ghost = PageRef(id=0, namespace="Main", title="Ghost", slug="ghost")
    assert str(get_robot_policy(ghost, None, make_settings())) == "noindex,nofollow"


def test_old_revision_is_noindex_nofollow():
    page = _page()
    policy = get_robot_policy(page, ViewRequest(page, oldid=10), make_settings())
    assert str(policy) == "noindex,nofollow"


def test_printable_is_noindex_follow():
    page = _page()
    policy = get_robot_policy(page, ViewRequest(page, printable=True), make_settings())
    assert str(policy) == "noindex,follow"


def test_namespace_policy_merges_with_default():
    page = _page()
    settings = make_settings(namespace_robot_policies={"Main": "noindex"})
    assert str(get_robot_policy(page, ViewRequest(page), settings)) == "noindex,follow"


def test_noindex_magic_word_honoured_where_allowed():
    page = _page()
    output = rendered(20, index_policy="noindex")
    assert str(get_robot_policy(page, ViewRequest(page), make_settings(), output)) == "noindex,follow"

    settings = make_settings(noindex_namespaces_allowed=[])
    assert str(get_robot_policy(page, ViewRequest(page), settings, output)) == "index,follow"


def test_article_policy_beats_magic_word():
    page = _page()
    output = rendered(20, index_policy="noindex")
    settings = make_settings(article_robot_policies={"Main:Foo": "index,nofollow"})
    assert str(get_robot_policy(page, ViewRequest(page), settings, output)) == "index,nofollow"


# =============================================================================
# CDN lifetime / redirect targets
# =============================================================================

def test_adapt_cdn_ttl_scales_with_age():
    now = BASE_TIME + timedelta(hours=10)
    assert adapt_cdn_ttl(BASE_TIME, 86400, now=now) == 3600
    assert adapt_cdn_ttl(now, 86400, now=now) == 60
    assert adapt_cdn_ttl(BASE_TIME - timedelta(days=30), 86400, now=now) == 86400
    assert adapt_cdn_ttl(None, 500) == 500


def test_split_target():
    assert split_target("Help:Editing", "Main") == ("Help", "Editing")
    assert split_target("Plain Title", "Main") == ("Main", "Plain Title")


# -----------------------------------------------------------------------------
