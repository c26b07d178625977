#!/usr/bin/env python3
"""
vulnview - findings viewer TUI
Filter, search and sort large finding sets in a virtualized table.
"""

import logging
from typing import Optional

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from vulnview.core.pipeline import (
    FilterRequest,
    FilterState,
    apply_filters,
    filter_findings,
    load_persisted_rules,
    reset_filters,
)
from vulnview.core.scheduler import RENDER_DELAY_MS, RenderScheduler
from vulnview.core.sorting import SortState, sort_findings
from vulnview.utils.schema import FindingSet, SearchMode, Severity
from vulnview.utils.store import KeyValueStore, MemoryStore

from .screens import FiltersModal, FindingDetailModal
from .theme import COLORS, MAIN_CSS
from .widgets import ColumnHeader, FindingSelected, SortRequested, VirtualFindingsTable

logger = logging.getLogger(__name__)

NOTIFY_SEVERITY = {"info": "information", "warning": "warning", "error": "error"}


class VulnviewApp(App):
    """Findings viewer."""

    CSS = MAIN_CSS

    TITLE = "vulnview"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("f", "open_filters", "Filters", show=True),
        Binding("x", "clear_filters", "Clear filters", show=True),
        Binding("1", "sort('severity')", "Sort severity", show=False),
        Binding("2", "sort('cves')", "Sort CVEs", show=False),
        Binding("3", "sort('score')", "Sort score", show=False),
        Binding("4", "sort('package')", "Sort package", show=False),
    ]

    def __init__(
        self,
        finding_set: Optional[FindingSet] = None,
        store: Optional[KeyValueStore] = None,
        search_mode: SearchMode = SearchMode.LITERAL,
        overscan_rows: int = 6,
        row_height_fallback: int = 1,
        render_delay_ms: float = RENDER_DELAY_MS,
    ) -> None:
        super().__init__()
        self.finding_set = finding_set or FindingSet()
        self.store = store if store is not None else MemoryStore()
        self.filter_state = FilterState(search_mode=SearchMode(search_mode))
        self.sort_state = SortState()
        self.overscan_rows = overscan_rows
        self.row_height_fallback = row_height_fallback
        self.render_delay_ms = render_delay_ms
        self.scheduler: Optional[RenderScheduler] = None
        self.visible_count = 0

    def compose(self) -> ComposeResult:
        yield Static("", id="summary-bar")
        yield ColumnHeader(self.sort_state, id="column-header")
        yield VirtualFindingsTable(
            row_height_fallback=self.row_height_fallback,
            overscan_rows=self.overscan_rows,
            id="findings-view",
        )
        yield Static("", id="stats-bar")
        yield Footer()

    def on_mount(self) -> None:
        if load_persisted_rules(self.filter_state, self.store):
            logger.info("Restored whitelist/ignore rules from the store")
        self.scheduler = RenderScheduler(self.render_findings, delay_ms=self.render_delay_ms)
        self.render_findings(self.finding_set)
        self.query_one(VirtualFindingsTable).focus()

    def on_unmount(self) -> None:
        if self.scheduler:
            self.scheduler.cancel()

    def notify_user(self, message: str, severity: str = "info") -> None:
        self.notify(message, severity=NOTIFY_SEVERITY.get(severity, "information"), timeout=4.5)

    def request_render(self) -> None:
        """Debounced re-render of the current finding set."""
        if self.scheduler is None:
            return
        self.scheduler.schedule_render(self.finding_set)

    def set_findings(self, finding_set: FindingSet) -> None:
        self.finding_set = finding_set
        self.request_render()

    def render_findings(self, finding_set: Optional[FindingSet]) -> None:
        """Full pass: filter, sort and hand the ordered rows to the table."""
        finding_set = finding_set or self.finding_set
        filtered = filter_findings(finding_set.findings, self.filter_state)
        rows = sort_findings(filtered, self.sort_state)
        self.visible_count = len(rows)

        self.query_one(VirtualFindingsTable).set_rows(rows)
        self.query_one(ColumnHeader).refresh_header()
        self._update_summary(finding_set)
        self._update_stats(finding_set, len(rows))

    def _update_summary(self, finding_set: FindingSet) -> None:
        totals = finding_set.severity_totals()
        image = finding_set.image.display if finding_set.image else "n/a"
        summary = Text.assemble(("Image: ", COLORS["muted"]), image, ("  |  ", COLORS["muted"]))
        for sev in Severity:
            summary.append(f"{sev.value.title()}: ", style=COLORS[sev.value])
            summary.append(f"{totals.get(sev.value, 0)}  ")
        self.query_one("#summary-bar", Static).update(summary)

    def _update_stats(self, finding_set: FindingSet, shown: int) -> None:
        total = len(finding_set.findings)
        stats = self.query_one("#stats-bar", Static)
        if total == 0:
            stats.update("No findings loaded.")
        elif shown == 0:
            stats.update("No vulnerabilities to display with the current filters (x clears them).")
        elif self.filter_state.is_active:
            stats.update(f"Filtered: {shown}/{total}  |  f filters  x clear  1-4 sort  enter details")
        else:
            stats.update(f"{total} findings  |  f filters  1-4 sort  enter details")

    def apply_request(self, request: FilterRequest) -> bool:
        applied = apply_filters(self.filter_state, request, store=self.store, notify=self.notify_user)
        if applied:
            self.request_render()
        return applied

    def action_open_filters(self) -> None:
        self.push_screen(
            FiltersModal(self.filter_state.to_request(), self.apply_request, store=self.store)
        )

    def action_clear_filters(self) -> None:
        reset_filters(self.filter_state, self.store)
        self.request_render()

    def action_sort(self, key: str) -> None:
        self.sort_state.toggle(key)
        self.query_one(ColumnHeader).refresh_header()
        self.request_render()

    @on(SortRequested)
    def sort_requested(self, event: SortRequested) -> None:
        self.action_sort(event.key)

    @on(FindingSelected)
    def finding_selected(self, event: FindingSelected) -> None:
        self.push_screen(FindingDetailModal(event.finding, self.filter_state.compiled_query))


def run_tui(finding_set: Optional[FindingSet] = None, **kwargs) -> None:
    """Run the findings viewer."""
    app = VulnviewApp(finding_set, **kwargs)
    app.run()
