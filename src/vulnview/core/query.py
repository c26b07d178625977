"""
Free-text query tokenizer and matcher.

A query is split on whitespace into tokens; every token must match (AND).
``field:value`` tokens are tested against one field of the finding, bare
terms against the combined haystack. Regex-mode queries are compiled once at
apply time; a pattern that fails to compile rejects the whole query.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple, Union

from vulnview.core.errors import QueryCompileError
from vulnview.core.rules import FindingText
from vulnview.utils.schema import Finding, SearchMode

logger = logging.getLogger(__name__)

SEARCH_MODE_HINTS = {
    SearchMode.LITERAL: "Literal: case-insensitive substring match, e.g. openssl path:/usr/lib",
    SearchMode.REGEX: "Regex: each token is a regular expression, e.g. ^lib(ssl|crypto) cve:2023-\\d+",
    SearchMode.FUZZY: "Fuzzy: characters must appear in order, e.g. opnssl matches openssl",
}

# "(?" not followed by ":" - inline flags, named groups, lookarounds
INLINE_GROUP_RE = re.compile(r"\(\?(?!:)")


@dataclass(frozen=True)
class QueryToken:
    raw: str
    field: Optional[str]
    value: str


@dataclass(frozen=True)
class CompiledQuery:
    """Tokenized query plus any regular expressions precompiled for it."""

    query: str = ""
    mode: SearchMode = SearchMode.LITERAL
    tokens: Tuple[QueryToken, ...] = ()
    # one lookahead pattern covering every bare term (no fielded tokens present)
    combined: Optional[Pattern[str]] = None
    # one pattern per token, aligned with ``tokens``
    patterns: Optional[Tuple[Pattern[str], ...]] = None

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def has_fielded(self) -> bool:
        return any(t.field is not None for t in self.tokens)


def fuzzy_subsequence(needle: str, hay: str) -> bool:
    """True when every character of ``needle`` appears in ``hay`` in order."""
    if not needle or not hay:
        return False
    i = 0
    for ch in hay:
        if ch == needle[i]:
            i += 1
            if i == len(needle):
                return True
    return False


def escape_for_regex(s: str) -> str:
    return re.escape(str(s))


def term_pattern(term: str, mode: Union[SearchMode, str]) -> Pattern[str]:
    """Compile a single term; literal terms are escaped, regex terms used as written."""
    mode = SearchMode(mode)
    source = escape_for_regex(term) if mode is SearchMode.LITERAL else term
    return re.compile(source, re.IGNORECASE)


def tokenize(query: str) -> Tuple[QueryToken, ...]:
    tokens = []
    for tok in (query or "").split():
        if ":" in tok:
            field, _, value = tok.partition(":")
            tokens.append(QueryToken(raw=tok, field=field.lower(), value=value))
        else:
            tokens.append(QueryToken(raw=tok, field=None, value=tok))
    return tuple(tokens)


def _combinable(pattern: Pattern[str]) -> bool:
    """True when wrapping ``pattern`` in a lookahead cannot change its meaning."""
    # capture groups renumber and inline flags stop being leading once joined
    return pattern.groups == 0 and not INLINE_GROUP_RE.search(pattern.pattern)


def compile_query(query: str, mode: Union[SearchMode, str] = SearchMode.LITERAL) -> CompiledQuery:
    """Tokenize ``query`` and precompile it for ``mode``.

    Bare regex terms are folded into one lookahead pattern when that is
    equivalent to searching for each term on its own; otherwise every token
    keeps its own pattern.

    Raises:
        QueryCompileError: in regex mode, when any token is not a valid pattern.
    """
    mode = SearchMode(mode)
    query = (query or "").strip()
    tokens = tokenize(query)
    if not tokens or mode is not SearchMode.REGEX:
        return CompiledQuery(query=query, mode=mode, tokens=tokens)

    current = tokens[0].value
    try:
        patterns = []
        for t in tokens:
            current = t.value
            patterns.append(term_pattern(t.value, mode))

        if not any(t.field is not None for t in tokens) and all(_combinable(p) for p in patterns):
            current = query
            # DOTALL keeps the single lookahead equivalent to per-token searches
            lookaheads = "".join(f"(?=.*(?:{t.value}))" for t in tokens)
            combined = re.compile(lookaheads, re.IGNORECASE | re.DOTALL)
            return CompiledQuery(query=query, mode=mode, tokens=tokens, combined=combined)

        return CompiledQuery(query=query, mode=mode, tokens=tokens, patterns=tuple(patterns))
    except re.error as e:
        logger.debug(f"Query {query!r} rejected: {e}")
        raise QueryCompileError(current, str(e)) from e


def _matches_term(
    term: str,
    target: str,
    mode: SearchMode,
    pattern: Optional[Pattern[str]] = None,
) -> bool:
    if not term:
        return False
    if mode is SearchMode.REGEX:
        try:
            if pattern is None:
                pattern = term_pattern(term, mode)
            return bool(pattern.search(target))
        except Exception as e:
            logger.debug(f"Query term {term!r} failed: {e}")
            return False
    if mode is SearchMode.FUZZY:
        return fuzzy_subsequence(term.lower(), target)
    return term.lower() in target


def query_matches(
    compiled: CompiledQuery, finding: Finding, text: Optional[FindingText] = None
) -> bool:
    """True when the finding satisfies every token of the compiled query."""
    if compiled.is_empty:
        return True
    if text is None:
        text = FindingText(finding)

    if compiled.combined is not None:
        try:
            return bool(compiled.combined.search(text.combined))
        except Exception as e:
            logger.debug(f"Combined query pattern failed: {e}")
            return False

    for idx, token in enumerate(compiled.tokens):
        pattern = compiled.patterns[idx] if compiled.patterns else None
        if token.field is not None:
            target = text.field_text(token.field)
        else:
            target = text.combined
        if not _matches_term(token.value, target, compiled.mode, pattern):
            return False
    return True
