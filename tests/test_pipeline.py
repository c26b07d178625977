import json

import pytest

from vulnview.core.pipeline import (
    RULES_KEY,
    FilterRequest,
    FilterState,
    RuleSet,
    apply_filters,
    filter_findings,
    load_persisted_rules,
    reset_filters,
)
from vulnview.core.rules import InvalidRule, RegexRule
from vulnview.utils.schema import SearchMode, Severity
from vulnview.utils.store import MemoryStore


class Notes:
    def __init__(self):
        self.messages = []

    def __call__(self, message, severity):
        self.messages.append((message, severity))


class BrokenPattern:
    def search(self, text):
        raise RuntimeError("boom")


@pytest.fixture
def notes():
    return Notes()


def applied(findings, finding_ids, **request):
    state = FilterState()
    assert apply_filters(state, FilterRequest(**request))
    return finding_ids(filter_findings(findings, state))


def test_defaults_are_identity(sample_findings):
    result = filter_findings(sample_findings, FilterState())
    assert result == sample_findings
    assert result is not sample_findings


@pytest.mark.parametrize("severity", [s.value for s in Severity])
def test_single_severity_selection(sample_findings, severity):
    state = FilterState()
    assert apply_filters(state, FilterRequest(show_all=False, severities={severity: True}))
    result = filter_findings(sample_findings, state)
    assert all(f.severity_name == severity for f in result)
    expected = [f for f in sample_findings if f.severity_name == severity]
    assert result == expected


def test_severity_keys_are_case_insensitive(sample_findings, finding_ids):
    assert applied(sample_findings, finding_ids, show_all=False, severities={"HIGH": True}) == ["f2", "f3"]


def test_severity_less_findings_drop_out_under_severity_filter(sample_findings, finding_ids):
    ids = applied(sample_findings, finding_ids, show_all=False, severities={"critical": True, "low": True})
    assert ids == ["f1", "f4"]
    assert "f5" not in ids


def test_severity_less_findings_kept_when_no_flag_active(sample_findings, finding_ids):
    # only reachable by building the state directly; apply rejects it
    state = FilterState(show_all=False)
    assert finding_ids(filter_findings(sample_findings, state)) == ["f5"]


def test_fix_only(sample_findings, finding_ids):
    assert applied(sample_findings, finding_ids, fix_only=True) == ["f1", "f3"]


def test_whitelist_is_an_or_over_rules(sample_findings, finding_ids):
    assert applied(sample_findings, finding_ids, whitelist=["package:curl", "path:/bin/"]) == ["f2", "f4"]


def test_whitelist_without_matches_drops_everything(sample_findings, finding_ids):
    assert applied(sample_findings, finding_ids, whitelist=["nothing-matches-this"]) == []


def test_ignore_drops_matches(sample_findings, finding_ids):
    assert applied(sample_findings, finding_ids, ignore="left-pad\n/^zlib/") == ["f1", "f2", "f4"]


def test_ignore_runs_after_whitelist(sample_findings, finding_ids):
    ids = applied(sample_findings, finding_ids, whitelist=["heap"], ignore=["zlib"])
    assert ids == ["f2"]


def test_stages_compose_with_query(sample_findings, finding_ids):
    ids = applied(
        sample_findings, finding_ids,
        show_all=False, severities={"high": True, "critical": True},
        fix_only=True, query="heap",
    )
    assert ids == ["f3"]


def test_invalid_rules_never_match(sample_findings, finding_ids):
    # an invalid whitelist line alone whitelists nothing
    assert applied(sample_findings, finding_ids, whitelist=["/x[/"]) == []
    assert applied(sample_findings, finding_ids, ignore=["/x[/"]) == finding_ids(sample_findings)


def test_rule_errors_during_matching_are_non_matches(sample_findings):
    state = FilterState(rules=RuleSet(ignore=[RegexRule(pattern=BrokenPattern(), raw="/x/")]))
    assert filter_findings(sample_findings, state) == sample_findings


def test_filtering_does_not_mutate_state(sample_findings):
    state = FilterState()
    apply_filters(state, FilterRequest(query="heap", whitelist=["curl"]))
    before = state.to_request()
    compiled = state.compiled_query
    filter_findings(sample_findings, state)
    assert state.to_request() == before
    assert state.compiled_query is compiled


def test_apply_rejects_empty_severity_selection(notes):
    state = FilterState()
    assert not apply_filters(state, FilterRequest(show_all=False, query="curl"), notify=notes)
    assert state.show_all is True
    assert state.query == ""
    assert notes.messages[0][1] == "error"
    assert notes.messages[0][0].startswith("No severity selected")


def test_apply_rejects_invalid_regex_query_atomically(notes):
    state = FilterState()
    assert apply_filters(state, FilterRequest(query="curl", whitelist=["curl"]))
    compiled, rules = state.compiled_query, state.rules

    request = FilterRequest(query="foo(", search_mode="regex", fix_only=True, ignore=["zlib"])
    assert not apply_filters(state, request, notify=notes)

    assert state.compiled_query is compiled
    assert state.rules is rules
    assert state.query == "curl"
    assert state.fix_only is False
    assert state.search_mode is SearchMode.LITERAL
    assert notes.messages == [(notes.messages[0][0], "error")]
    assert notes.messages[0][0].startswith("Invalid regex:")


def test_apply_warns_about_invalid_rule_lines(notes):
    state = FilterState()
    request = FilterRequest(search_mode="regex", whitelist=["open(", "curl"], ignore=["/[/"])
    assert apply_filters(state, request, notify=notes)
    assert isinstance(state.rules.whitelist[0], InvalidRule)
    assert isinstance(state.rules.ignore[0], InvalidRule)
    assert notes.messages == [("2 rule line(s) could not be compiled and will never match", "warning")]


def test_apply_keeps_severity_flags_when_showing_all():
    state = FilterState()
    apply_filters(state, FilterRequest(show_all=False, severities={"high": True}))
    apply_filters(state, FilterRequest(show_all=True, severities={"low": True}))
    assert state.show_all
    assert state.severities["high"] is True
    assert state.severities["low"] is False


def test_apply_persists_rules_and_reset_removes_them():
    store = MemoryStore()
    state = FilterState()
    apply_filters(state, FilterRequest(whitelist="curl\n\n zlib ", ignore=["left-pad"]), store=store)
    assert json.loads(store.get(RULES_KEY)) == {"whitelist": ["curl", "zlib"], "ignore": ["left-pad"]}

    apply_filters(state, FilterRequest(), store=store)
    assert store.get(RULES_KEY) is None

    apply_filters(state, FilterRequest(ignore=["curl"]), store=store)
    reset_filters(state, store)
    assert store.get(RULES_KEY) is None
    assert not state.is_active
    assert state.rules.ignore == []


def test_load_persisted_rules(sample_findings, finding_ids):
    store = MemoryStore({RULES_KEY: json.dumps({"whitelist": [], "ignore": ["heap"]})})
    state = FilterState()
    assert load_persisted_rules(state, store)
    assert state.ignore_text == ["heap"]
    assert finding_ids(filter_findings(sample_findings, state)) == ["f1", "f4", "f5"]


def test_load_persisted_rules_ignores_garbage():
    state = FilterState()
    assert not load_persisted_rules(state, MemoryStore())
    assert not load_persisted_rules(state, MemoryStore({RULES_KEY: "not json"}))
    assert not load_persisted_rules(state, MemoryStore({RULES_KEY: "[1, 2]"}))
    assert not state.rules


@pytest.mark.parametrize(
    "raw",
    ['{"whitelist": null}', '{"ignore": 5}', '{"whitelist": "curl", "ignore": []}'],
)
def test_load_persisted_rules_rejects_non_list_entries(raw):
    state = FilterState()
    assert not load_persisted_rules(state, MemoryStore({RULES_KEY: raw}))
    assert state.whitelist_text == []
    assert not state.rules


def test_is_active():
    state = FilterState()
    assert not state.is_active
    apply_filters(state, FilterRequest(query="x"))
    assert state.is_active


def test_request_round_trips_through_state():
    request = FilterRequest(
        show_all=False, severities={"critical": True}, fix_only=True,
        query="cve:2023", search_mode="fuzzy", whitelist=["a"], ignore=["b"],
    )
    state = FilterState()
    assert apply_filters(state, request)
    assert state.to_request() == request
