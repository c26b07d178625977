"""
Column sorting for findings.
"""

import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterable, List, Optional

from vulnview.utils.schema import SEVERITY_RANK, Finding

ASCENDING = 1
DESCENDING = -1

# column keys that do not map straight onto a Finding attribute
KEY_ACCESSORS: Dict[str, Callable[[Finding], Any]] = {
    "score": lambda f: f.cvss_score,
    "version": lambda f: f.package.version,
    "fix": lambda f: f.fixed_version if f.fix_available else None,
}


@dataclass
class SortState:
    key: Optional[str] = None
    direction: int = ASCENDING

    def toggle(self, key: str) -> None:
        """Same key flips direction; a new key starts ascending."""
        if self.key == key:
            self.direction = -self.direction
        else:
            self.key = key
            self.direction = ASCENDING

    def indicator(self, key: str) -> str:
        if self.key != key:
            return ""
        return " ▲" if self.direction == ASCENDING else " ▼"


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _as_number(s: str) -> Optional[float]:
    # float() also takes "nan", "inf" and "1_000"; none of them order as numbers
    if "_" in s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _value(finding: Finding, key: str) -> Any:
    accessor = KEY_ACCESSORS.get(key)
    if accessor:
        return accessor(finding)
    return getattr(finding, key, None)


def compare_by_key(a: Finding, b: Finding, key: str) -> int:
    if key == "severity":
        return SEVERITY_RANK.get(a.severity_name, 0) - SEVERITY_RANK.get(b.severity_name, 0)

    if key == "package":
        return _cmp(a.display_name.lower(), b.display_name.lower())

    if key == "cves":
        return len(a.cves) - len(b.cves)

    av = _value(a, key)
    bv = _value(b, key)
    as_ = "" if av is None else str(av)
    bs = "" if bv is None else str(bv)
    an = _as_number(as_)
    bn = _as_number(bs)
    if an is not None and bn is not None:
        return _cmp(an, bn)
    return _cmp(as_.lower(), bs.lower())


def sort_findings(findings: Iterable[Finding], sort_state: SortState) -> List[Finding]:
    """Return a new, stably sorted list; the input is never reordered."""
    rows = list(findings)
    if not sort_state.key:
        return rows
    key = sort_state.key
    direction = sort_state.direction
    return sorted(rows, key=cmp_to_key(lambda a, b: direction * compare_by_key(a, b, key)))
