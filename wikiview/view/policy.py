#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Robot (index / follow) policy
=============================
Policies are written as comma-separated strings, e.g. ``"noindex,follow"``.
Order does not matter; unknown tokens are ignored; when a token is repeated
the last one wins.  Policies from several sources are layered with
``RobotPolicy.merge``: fields set on the right-hand side win.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from wikiview.core.config import Settings
    from .types import PageRef, RenderedOutput, ViewRequest


_INDEX = ("index", "noindex")
_FOLLOW = ("follow", "nofollow")


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RobotPolicy:
    index: Optional[str] = None
    follow: Optional[str] = None

    def merge(self, other: "RobotPolicy") -> "RobotPolicy":
        return RobotPolicy(
            index=other.index or self.index,
            follow=other.follow or self.follow,
        )

    def __str__(self) -> str:
        return format_robot_policy(self)


NOINDEX_NOFOLLOW = RobotPolicy("noindex", "nofollow")
NOINDEX_FOLLOW = RobotPolicy("noindex", "follow")


# -----------------------------------------------------------------------------

def parse_robot_policy(policy: Union[str, RobotPolicy, None]) -> RobotPolicy:
    """``"follow, noindex"`` → ``RobotPolicy(index="noindex", follow="follow")``."""
    if isinstance(policy, RobotPolicy):
        return policy
    if not policy:
        return RobotPolicy()

    index = follow = None
    for token in (t.strip().lower() for t in policy.split(",")):
        if token in _INDEX:
            index = token
        elif token in _FOLLOW:
            follow = token
    return RobotPolicy(index, follow)


def format_robot_policy(policy: RobotPolicy) -> str:
    """Always index part first: ``"noindex,follow"``."""
    return ",".join(p for p in (policy.index, policy.follow) if p)


# -----------------------------------------------------------------------------

def get_robot_policy(
    page: "PageRef",
    request: Optional["ViewRequest"],
    settings: "Settings",
    output: Optional["RenderedOutput"] = None,
) -> RobotPolicy:
    """Policy for a page view, most specific source last."""
    if not page.exists or (request and (request.oldid or request.diff is not None)):
        # Nonexistent pages, old revisions and diffs
        return NOINDEX_NOFOLLOW
    if request and request.printable:
        return NOINDEX_FOLLOW
    if request and request.curid:
        return NOINDEX_FOLLOW

    policy = parse_robot_policy(settings.default_robot_policy)

    ns_policy = settings.namespace_robot_policies.get(page.namespace)
    if ns_policy:
        policy = policy.merge(parse_robot_policy(ns_policy))

    if (
        output is not None
        and output.index_policy
        and page.namespace in settings.noindex_namespaces_allowed
    ):
        policy = policy.merge(RobotPolicy(index=output.index_policy))

    # Site config beats __INDEX__ / __NOINDEX__ written by page authors
    article_policy = settings.article_robot_policies.get(page.prefixed_title)
    if article_policy:
        policy = policy.merge(parse_robot_policy(article_policy))

    return policy


# -----------------------------------------------------------------------------
