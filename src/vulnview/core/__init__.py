"""
Core filtering, sorting and windowing for the findings viewer.
Pure functions over in-memory findings; no I/O happens here.
"""

from .errors import (
    FilterApplyError,
    PresetError,
    QueryCompileError,
    SeveritySelectionError,
    VulnviewError,
)
from .pipeline import FilterRequest, FilterState, apply_filters, filter_findings, reset_filters
from .query import CompiledQuery, compile_query, fuzzy_subsequence
from .rules import Rule, compile_rule_line, compile_rule_set, matches
from .scheduler import RenderScheduler
from .sorting import SortState, compare_by_key, sort_findings
from .window import FrameThrottle, VirtualViewport, Window, compute_window

__all__ = [
    "VulnviewError",
    "FilterApplyError",
    "QueryCompileError",
    "SeveritySelectionError",
    "PresetError",
    "FilterRequest",
    "FilterState",
    "apply_filters",
    "filter_findings",
    "reset_filters",
    "CompiledQuery",
    "compile_query",
    "fuzzy_subsequence",
    "Rule",
    "compile_rule_line",
    "compile_rule_set",
    "matches",
    "RenderScheduler",
    "SortState",
    "compare_by_key",
    "sort_findings",
    "FrameThrottle",
    "VirtualViewport",
    "Window",
    "compute_window",
]
