#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for rights derived from user groups."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tests.fakes import make_settings
from wikiview.models import User
from wikiview.services.authority import UserAuthority
from wikiview.view.types import PageRef, RevisionFlags, RevisionRef


_MAIN = PageRef(id=1, namespace="Main", title="Foo", slug="foo", latest_rev_id=3)
_STAFF = PageRef(id=2, namespace="Staff", title="Rota", slug="rota", latest_rev_id=4)


def _user(**kw) -> User:
    return User(id="u-1", username=kw.pop("username", "alice"), display_name="", **kw)


def _revision(deleted: int) -> RevisionRef:
    return RevisionRef(id=3, page_id=1, timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc), deleted=deleted)


# =============================================================================

def test_anonymous_rights():
    authority = UserAuthority(None, make_settings())
    assert not authority.is_registered
    assert authority.user_id is None
    assert authority.can_read(_MAIN)
    assert authority.can("edit", _MAIN)
    assert authority.can("create", _MAIN)
    assert not authority.can("delete", _MAIN)
    assert not authority.can_view_deleted_text(_revision(RevisionFlags.TEXT))


def test_anonymous_rights_are_configurable():
    authority = UserAuthority(None, make_settings(anonymous_rights=["read"]))
    assert authority.can_read(_MAIN)
    assert not authority.can("edit", _MAIN)


def test_read_restricted_namespace():
    settings = make_settings(read_restricted_namespaces=["Staff"])
    assert not UserAuthority(None, settings).can_read(_STAFF)
    assert not UserAuthority(None, settings).can("edit", _STAFF)
    assert UserAuthority(_user(is_admin=False, can_suppress=False), settings).can_read(_STAFF)


def test_registered_user():
    authority = UserAuthority(_user(is_admin=False, can_suppress=False), make_settings())
    assert authority.is_registered
    assert authority.user_id == "u-1"
    assert authority.name == "alice"
    assert not authority.can("delete", _MAIN)


def test_sysop():
    authority = UserAuthority(_user(is_admin=True, can_suppress=False), make_settings())
    assert authority.can("delete", _MAIN)
    assert authority.can_view_deleted_text(_revision(RevisionFlags.TEXT))
    assert not authority.can_view_deleted_text(_revision(RevisionFlags.TEXT | RevisionFlags.RESTRICTED))
    assert not authority.is_allowed("suppressrevision")


def test_suppressor():
    authority = UserAuthority(_user(is_admin=True, can_suppress=True), make_settings())
    assert authority.can_view_deleted_text(_revision(RevisionFlags.TEXT | RevisionFlags.RESTRICTED))
    assert authority.is_allowed("suppressrevision")


def test_unknown_action():
    with pytest.raises(ValueError):
        UserAuthority(None, make_settings()).can("teleport", _MAIN)


# -----------------------------------------------------------------------------
