"""Execution planner: dependency expansion and ordering of steps."""

from .deps import get_all_dependencies
from .models import Plan
from .planner import build_plan, expand_for_install, render_plan
from .sorter import CycleError, topological_sort

__all__ = [
    "Plan",
    "CycleError",
    "topological_sort",
    "get_all_dependencies",
    "expand_for_install",
    "build_plan",
    "render_plan",
]
