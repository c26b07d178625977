"""
Filter pipeline: severity, fix-only, whitelist, ignore and query stages.

``FilterState`` is owned by the presentation layer. Its derived fields
(``compiled_query`` and ``rules``) are only ever replaced together by
``apply_filters``; the filter pass itself treats the state as read-only.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from vulnview.core.errors import FilterApplyError, SeveritySelectionError
from vulnview.core.query import CompiledQuery, compile_query, query_matches
from vulnview.core.rules import (
    FindingText,
    Rule,
    compile_rule_set,
    invalid_rules,
    matches,
)
from vulnview.utils.schema import Finding, SearchMode, Severity
from vulnview.utils.store import KeyValueStore

logger = logging.getLogger(__name__)

RULES_KEY = "filter_rules"

# notify(message, severity) where severity is "info", "warning" or "error"
Notify = Callable[[str, str], None]


def default_severities() -> Dict[str, bool]:
    return {s.value: False for s in Severity}


@dataclass(frozen=True)
class RuleSet:
    whitelist: List[Rule] = field(default_factory=list)
    ignore: List[Rule] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.whitelist or self.ignore)


class FilterRequest(BaseModel):
    """Values submitted from the filter dialog, validated before apply."""

    show_all: bool = True
    severities: Dict[str, bool] = Field(default_factory=default_severities)
    fix_only: bool = False
    query: str = ""
    search_mode: SearchMode = SearchMode.LITERAL
    whitelist: List[str] = Field(default_factory=list)
    ignore: List[str] = Field(default_factory=list)

    @field_validator("severities", mode="before")
    @classmethod
    def normalize_severities(cls, v):
        merged = default_severities()
        for key, value in (v or {}).items():
            key = str(key).lower()
            if key in merged:
                merged[key] = bool(value)
        return merged

    @field_validator("whitelist", "ignore", mode="before")
    @classmethod
    def split_lines(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.splitlines()
        return [line.strip() for line in v if line and line.strip()]


@dataclass
class FilterState:
    show_all: bool = True
    severities: Dict[str, bool] = field(default_factory=default_severities)
    fix_only: bool = False
    query: str = ""
    search_mode: SearchMode = SearchMode.LITERAL
    whitelist_text: List[str] = field(default_factory=list)
    ignore_text: List[str] = field(default_factory=list)
    # derived at apply time
    compiled_query: CompiledQuery = field(default_factory=CompiledQuery)
    rules: RuleSet = field(default_factory=RuleSet)

    @property
    def any_severity_selected(self) -> bool:
        return any(self.severities.values())

    @property
    def is_active(self) -> bool:
        return bool(
            not self.show_all
            or self.fix_only
            or not self.compiled_query.is_empty
            or self.rules
        )

    def to_request(self) -> FilterRequest:
        return FilterRequest(
            show_all=self.show_all,
            severities=dict(self.severities),
            fix_only=self.fix_only,
            query=self.query,
            search_mode=self.search_mode,
            whitelist=list(self.whitelist_text),
            ignore=list(self.ignore_text),
        )


def _severity_passes(finding: Finding, state: FilterState) -> bool:
    sev = finding.severity_name
    if sev:
        return bool(state.severities.get(sev))
    # severity-less findings drop out once any severity filter is active
    return not state.any_severity_selected


def filter_findings(findings: Iterable[Finding], state: FilterState) -> List[Finding]:
    """Return the findings that pass every stage, in input order."""
    whitelist = state.rules.whitelist
    ignore = state.rules.ignore
    compiled = state.compiled_query
    result = []

    for finding in findings:
        if not state.show_all and not _severity_passes(finding, state):
            continue
        if state.fix_only and not finding.fix_available:
            continue

        text = None
        if whitelist or ignore or not compiled.is_empty:
            text = FindingText(finding)

        if whitelist and not any(matches(r, finding, text) for r in whitelist):
            continue
        if ignore and any(matches(r, finding, text) for r in ignore):
            continue
        if not query_matches(compiled, finding, text):
            continue
        result.append(finding)

    return result


def _save_rules(store: Optional[KeyValueStore], whitelist: List[str], ignore: List[str]) -> None:
    if store is None:
        return
    try:
        if whitelist or ignore:
            store.set(RULES_KEY, json.dumps({"whitelist": whitelist, "ignore": ignore}))
        else:
            store.remove(RULES_KEY)
    except Exception as e:
        logger.warning(f"Failed to persist filter rules: {e}")


def apply_filters(
    state: FilterState,
    request: FilterRequest,
    store: Optional[KeyValueStore] = None,
    notify: Optional[Notify] = None,
) -> bool:
    """Validate ``request`` and commit it to ``state`` as a single unit.

    Returns False, with ``state`` untouched, when the request is rejected;
    the reason is passed to ``notify``.
    """
    try:
        if not request.show_all and not any(request.severities.values()):
            raise SeveritySelectionError()
        compiled = compile_query(request.query, request.search_mode)
        rules = RuleSet(
            whitelist=compile_rule_set(request.whitelist, request.search_mode),
            ignore=compile_rule_set(request.ignore, request.search_mode),
        )
    except FilterApplyError as e:
        logger.info(f"Filter apply rejected: {e.message}")
        if notify:
            notify(e.message, "error")
        return False

    state.show_all = request.show_all
    if not request.show_all:
        state.severities = dict(request.severities)
    state.fix_only = request.fix_only
    state.query = request.query
    state.search_mode = request.search_mode
    state.whitelist_text = list(request.whitelist)
    state.ignore_text = list(request.ignore)
    state.compiled_query = compiled
    state.rules = rules

    _save_rules(store, state.whitelist_text, state.ignore_text)

    bad = invalid_rules(rules.whitelist) + invalid_rules(rules.ignore)
    if bad:
        logger.debug(f"Invalid rule lines: {[r.raw for r in bad]}")
        if notify:
            notify(f"{len(bad)} rule line(s) could not be compiled and will never match", "warning")
    return True


def reset_filters(state: FilterState, store: Optional[KeyValueStore] = None) -> None:
    """Restore defaults and drop any persisted rules."""
    state.show_all = True
    state.severities = default_severities()
    state.fix_only = False
    state.query = ""
    state.search_mode = SearchMode.LITERAL
    state.whitelist_text = []
    state.ignore_text = []
    state.compiled_query = CompiledQuery()
    state.rules = RuleSet()
    if store is not None:
        try:
            store.remove(RULES_KEY)
        except Exception as e:
            logger.warning(f"Failed to remove persisted filter rules: {e}")


def load_persisted_rules(state: FilterState, store: KeyValueStore) -> bool:
    """Compile rules saved by a previous apply so they take effect at startup."""
    raw = store.get(RULES_KEY)
    if not raw:
        return False
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        whitelist = data.get("whitelist", [])
        ignore = data.get("ignore", [])
        if not isinstance(whitelist, list) or not isinstance(ignore, list):
            raise ValueError("whitelist and ignore must be lists")
        whitelist = [str(line) for line in whitelist]
        ignore = [str(line) for line in ignore]
    except ValueError as e:
        logger.warning(f"Ignoring unreadable persisted rules: {e}")
        return False

    state.whitelist_text = whitelist
    state.ignore_text = ignore
    state.rules = RuleSet(
        whitelist=compile_rule_set(whitelist, state.search_mode),
        ignore=compile_rule_set(ignore, state.search_mode),
    )
    logger.debug(f"Loaded {len(whitelist)} whitelist and {len(ignore)} ignore rule(s)")
    return True
