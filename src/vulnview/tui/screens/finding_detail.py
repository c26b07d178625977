"""
Finding Detail Modal Screen
Shows everything known about one finding, with the active query terms highlighted.
"""

import re
from typing import Optional

from rich.json import JSON
from rich.text import Text
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from vulnview.core.query import CompiledQuery, term_pattern
from vulnview.utils.schema import Finding, SearchMode

from ..theme import COLORS, MODAL_CSS, SEVERITY_STYLES


def highlight_terms(text: str, compiled: Optional[CompiledQuery]) -> Text:
    """Highlight literal and regex query terms inside ``text``."""
    rich_text = Text(text)
    if compiled is None or compiled.is_empty or compiled.mode is SearchMode.FUZZY:
        return rich_text
    for token in compiled.tokens:
        if not token.value:
            continue
        try:
            rich_text.highlight_regex(term_pattern(token.value, compiled.mode), style=f"bold {COLORS['pink']}")
        except re.error:
            # a term that does not compile just goes unhighlighted
            continue
    return rich_text


class FindingDetailModal(ModalScreen[None]):
    """Modal screen showing detailed finding information."""

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
    ]

    def __init__(self, finding: Finding, compiled_query: Optional[CompiledQuery] = None) -> None:
        super().__init__()
        self.finding = finding
        self.compiled_query = compiled_query

    def compose(self) -> ComposeResult:
        f = self.finding
        sev = f.severity_name
        with Container(classes="modal-container"):
            yield Static(
                Text.assemble(
                    ((sev or "no severity").upper(), SEVERITY_STYLES.get(sev or "unknown", "")),
                    "  ",
                    f.display_name or f.id,
                ),
                classes="modal-header",
                id="detail-title",
            )

            with VerticalScroll(classes="modal-content"):
                score = "" if f.cvss_score is None else f"{f.cvss_score:g}"
                yield Static(Text(f"Severity: {sev}  |  Score: {score}"), id="detail-severity")
                package = f.display_name
                if f.package.version:
                    package = f"{package} - {f.package.version}"
                yield Static(Text(f"Package: {package}"), id="detail-package")
                yield Static(Text(f"Fix: {f.fix_text}"), id="detail-fix")
                if f.path:
                    yield Static(Text(f"Path: {f.path}"), id="detail-path")
                if f.cves:
                    yield Static(highlight_terms("CVEs: " + ", ".join(f.cves), self.compiled_query), id="detail-cves")

                if f.description:
                    yield Static("Description", classes="section-title")
                    yield Static(highlight_terms(f.description, self.compiled_query), id="detail-description")

                if f.references:
                    yield Static("References", classes="section-title")
                    for ref in f.references:
                        label = ref.label or ref.url
                        line = Text(f"  • {label}")
                        if ref.label and ref.url:
                            line.append(f"  {ref.url}", style=COLORS["muted"])
                        yield Static(line, classes="detail-reference")

                if f.metadata:
                    yield Static("Metadata", classes="section-title")
                    yield Static(JSON.from_data(f.metadata, default=str), id="detail-metadata")

            with Horizontal(classes="modal-actions"):
                yield Button("Close", variant="primary", classes="action-btn", id="close-detail")

    @on(Button.Pressed, "#close-detail")
    def close_detail(self) -> None:
        self.dismiss(None)
