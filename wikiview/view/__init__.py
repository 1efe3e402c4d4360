"""Page view core: revision resolution, visibility, output selection."""

from .context import CacheState, ViewContext
from .controller import PageViewController
from .hooks import PASS, HookOutcome, ViewHeaderHandler
from .policy import RobotPolicy, format_robot_policy, get_robot_policy, parse_robot_policy
from .resolver import RevisionResolver
from .selector import RenderSelector
from .types import (
    DeleteRequest,
    Direction,
    OutputPlan,
    PageRef,
    PlanKind,
    RenderOptions,
    RevisionFlags,
    RevisionRef,
    ViewRequest,
)
from .visibility import DisplayDecision, DisplayMode, VisibilityGate, check_display

__all__ = [
    "CacheState",
    "DeleteRequest",
    "Direction",
    "DisplayDecision",
    "DisplayMode",
    "HookOutcome",
    "OutputPlan",
    "PASS",
    "PageRef",
    "PageViewController",
    "PlanKind",
    "RenderOptions",
    "RenderSelector",
    "RevisionFlags",
    "RevisionRef",
    "RevisionResolver",
    "RobotPolicy",
    "ViewContext",
    "ViewHeaderHandler",
    "ViewRequest",
    "VisibilityGate",
    "check_display",
    "format_robot_policy",
    "get_robot_policy",
    "parse_robot_policy",
]
