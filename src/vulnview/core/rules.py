"""
Whitelist / ignore rule compilation and matching.

Each user-authored line compiles into one rule variant. Compilation never
raises: a line whose regular expression does not compile becomes an
``InvalidRule`` which never matches, so one bad line cannot disable the rest
of the rule set.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Union

from vulnview.utils.schema import Finding, SearchMode

logger = logging.getLogger(__name__)

FIELD_LINE_RE = re.compile(r"^([a-zA-Z0-9_\-]+):(.*)$")


@dataclass(frozen=True)
class LiteralRule:
    value: str
    raw: str = ""


@dataclass(frozen=True)
class RegexRule:
    pattern: Pattern[str]
    raw: str = ""


@dataclass(frozen=True)
class FieldLiteralRule:
    field: str
    value: str
    raw: str = ""


@dataclass(frozen=True)
class FieldRegexRule:
    field: str
    pattern: Pattern[str]
    raw: str = ""


@dataclass(frozen=True)
class InvalidRule:
    raw: str = ""


Rule = Union[LiteralRule, RegexRule, FieldLiteralRule, FieldRegexRule, InvalidRule]


class FindingText:
    """Lower-cased searchable strings of one finding, built once per pass."""

    __slots__ = ("package", "component", "cves", "path", "description", "severity", "combined")

    def __init__(self, finding: Finding) -> None:
        self.package = finding.package.name.lower()
        self.component = finding.component.lower()
        self.cves = " ".join(finding.cves).lower()
        self.path = finding.path.lower()
        self.description = finding.description.lower()
        self.severity = finding.severity_name

        parts = [self.package]
        if self.component and self.component != self.package:
            parts.append(self.component)
        parts.extend([self.cves, self.path, self.description])
        self.combined = " ".join(p for p in parts if p)

    def field_text(self, field: str) -> str:
        """Text a field-scoped term is tested against; unknown fields use the haystack."""
        if field == "package":
            return self.package or self.component
        if field in ("cve", "cves"):
            return self.cves
        if field == "path":
            return self.path
        if field == "severity":
            return self.severity
        return self.combined


def _compile(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug(f"Rule pattern {pattern!r} does not compile: {e}")
        return None


def compile_rule_line(line: str, mode: Union[SearchMode, str] = SearchMode.LITERAL) -> Rule:
    """Compile one rule line into a rule variant."""
    mode = SearchMode(mode)
    line = (line or "").strip()
    if not line:
        return InvalidRule(raw=line)

    # explicit regex: /pattern/
    if len(line) > 2 and line.startswith("/") and line.endswith("/"):
        compiled = _compile(line[1:-1])
        return RegexRule(pattern=compiled, raw=line) if compiled else InvalidRule(raw=line)

    m = FIELD_LINE_RE.match(line)
    if m:
        field = m.group(1).lower()
        value = m.group(2)
        if mode is SearchMode.REGEX:
            compiled = _compile(value)
            if compiled is None:
                return InvalidRule(raw=line)
            return FieldRegexRule(field=field, pattern=compiled, raw=line)
        return FieldLiteralRule(field=field, value=value, raw=line)

    if mode is SearchMode.REGEX:
        compiled = _compile(line)
        return RegexRule(pattern=compiled, raw=line) if compiled else InvalidRule(raw=line)
    return LiteralRule(value=line, raw=line)


def compile_rule_set(
    lines: Iterable[str], mode: Union[SearchMode, str] = SearchMode.LITERAL
) -> List[Rule]:
    """Compile every non-empty line, preserving order."""
    return [compile_rule_line(line, mode) for line in lines if line and line.strip()]


def split_rule_text(text: str) -> List[str]:
    """Split textarea-style rule text into trimmed, non-empty lines."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def invalid_rules(rules: Iterable[Rule]) -> List[InvalidRule]:
    return [r for r in rules if isinstance(r, InvalidRule)]


def _field_literal(rule: FieldLiteralRule, text: FindingText) -> bool:
    value = rule.value.lower()
    field = rule.field
    if field == "package":
        return bool(
            (text.package and value in text.package)
            or (text.component and value in text.component)
        )
    if field in ("cve", "cves"):
        return bool(text.cves) and value in text.cves
    if field == "path":
        return bool(text.path) and value in text.path
    if field == "severity":
        return text.severity == value or value in text.severity
    return bool(text.combined) and value in text.combined


def _field_regex(rule: FieldRegexRule, text: FindingText) -> bool:
    search = rule.pattern.search
    field = rule.field
    if field == "package":
        return bool(search(text.package) or search(text.component))
    if field in ("cve", "cves"):
        return bool(search(text.cves))
    if field == "path":
        return bool(search(text.path))
    if field == "severity":
        return bool(search(text.severity))
    return bool(search(text.combined))


def matches(rule: Rule, finding: Finding, text: Optional[FindingText] = None) -> bool:
    """Return True when ``rule`` matches ``finding``.

    Pass a prebuilt ``text`` to avoid rebuilding the haystack for every rule.
    Any exception raised while matching is treated as a non-match.
    """
    if rule is None or isinstance(rule, InvalidRule):
        return False
    if text is None:
        text = FindingText(finding)
    try:
        if isinstance(rule, RegexRule):
            return bool(rule.pattern.search(text.combined))
        if isinstance(rule, LiteralRule):
            return rule.value.lower() in text.combined
        if isinstance(rule, FieldLiteralRule):
            return _field_literal(rule, text)
        if isinstance(rule, FieldRegexRule):
            return _field_regex(rule, text)
    except Exception as e:
        logger.debug(f"Rule {rule!r} failed on finding {finding.id}: {e}")
        return False
    return False
