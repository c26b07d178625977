"""
Virtual Findings Table
Scrollable findings list that materializes only the rows in the current
window. Scroll and resize re-window at most once per frame.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from rich.style import Style
from rich.text import Text
from textual import events
from textual.binding import Binding
from textual.geometry import Size
from textual.reactive import reactive
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widgets import Static

from vulnview.core.sorting import SortState
from vulnview.core.window import FrameThrottle, VirtualViewport, Window
from vulnview.utils.schema import Finding

from ..theme import COLORS, SEVERITY_STYLES
from .messages import FindingSelected, SortRequested

# (title, sort key, width); width 0 takes the remaining space
COLUMNS: Tuple[Tuple[str, Optional[str], int], ...] = (
    ("Severity", "severity", 10),
    ("CVEs", "cves", 24),
    ("Score", "score", 7),
    ("Package", "package", 30),
    ("Version", None, 16),
    ("Fix", None, 0),
)


def _cell(value: str, width: int) -> str:
    if width <= 0:
        return value
    if len(value) > width:
        return value[: max(0, width - 1)] + "…"
    return value.ljust(width)


def format_row(finding: Finding, width: int) -> Text:
    sev = finding.severity_name
    score = "" if finding.cvss_score is None else f"{finding.cvss_score:g}"
    values = (
        (finding.severity_name.upper(), SEVERITY_STYLES.get(sev or "unknown", "")),
        (", ".join(finding.cves), COLORS["text"]),
        (score, COLORS["text"]),
        (finding.display_name, COLORS["cyan"]),
        (finding.package.version, COLORS["muted"]),
        (finding.fix_text, COLORS["green"] if finding.fix_available else COLORS["muted"]),
    )
    text = Text(no_wrap=True, overflow="ellipsis")
    for (_, _, col_width), (value, style) in zip(COLUMNS, values):
        text.append(_cell(value, col_width) + " ", style=style)
    text.truncate(width, overflow="ellipsis")
    return text


def header_text(sort_state: SortState) -> Text:
    text = Text(no_wrap=True)
    for title, key, width in COLUMNS:
        label = title + (sort_state.indicator(key) if key else "")
        text.append(_cell(label, width) + " ", style="underline" if key else "")
    return text


def column_at(x: int) -> Optional[str]:
    """Sort key of the column under terminal column ``x``."""
    left = 0
    for _, key, width in COLUMNS:
        if width <= 0 or x < left + width + 1:
            return key
        left += width + 1
    return None


class ColumnHeader(Static):
    """Column titles; clicking a sortable title requests a sort."""

    def __init__(self, sort_state: SortState, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.sort_state = sort_state

    def on_mount(self) -> None:
        self.refresh_header()

    def refresh_header(self) -> None:
        self.update(header_text(self.sort_state))

    def on_click(self, event: events.Click) -> None:
        key = column_at(event.x)
        if key:
            self.post_message(SortRequested(key))


class VirtualFindingsTable(ScrollView, can_focus=True):
    """Findings rows rendered through a virtual window."""

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("pageup", "page_up", "Page Up", show=False),
        Binding("pagedown", "page_down", "Page Down", show=False),
        Binding("home", "first", "First", show=False),
        Binding("end", "last", "Last", show=False),
        Binding("enter", "select", "Details", show=True),
    ]

    cursor = reactive(0)

    def __init__(
        self,
        row_height_fallback: int = 1,
        overscan_rows: int = 6,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.rows: List[Finding] = []
        self.viewport = VirtualViewport(
            row_height_fallback=row_height_fallback,
            overscan_rows=overscan_rows,
        )
        self.window = Window(0, 0, 0)
        self._strips: Dict[int, List[Strip]] = {}
        self._strip_width = 0
        self._throttle = FrameThrottle(self._render_window)

    @property
    def row_height(self) -> int:
        return int(self.viewport.row_height or self.viewport.row_height_fallback)

    @property
    def materialized_rows(self) -> int:
        return len(self._strips)

    def set_rows(self, rows: Sequence[Finding]) -> None:
        """Full render pass over a new ordered row list."""
        self._throttle.cancel()
        self.viewport.on_scroll(self.scroll_y)
        self.viewport.on_resize(self.size.height)
        self.rows = list(rows)
        self._strips = {}

        scroll_top = self.viewport.begin_pass(len(self.rows), self._measure_row)
        self.virtual_size = Size(self.size.width, int(self.viewport.content_height))
        self.set_reactive(VirtualFindingsTable.cursor, min(self.cursor, max(0, len(self.rows) - 1)))
        self.scroll_to(y=scroll_top, animate=False)
        self.viewport.on_scroll(scroll_top)
        self._render_window()

    def _measure_row(self, index: int) -> int:
        """Render one row off-screen and count the lines it occupies."""
        width = self.size.width or 80
        console = self.app.console
        lines = console.render_lines(
            format_row(self.rows[index], width),
            console.options.update_width(width),
            pad=False,
        )
        return len(lines)

    def _render_row(self, index: int, width: int) -> List[Strip]:
        style = self.rich_style
        if index == self.cursor:
            style = style + Style(bgcolor=COLORS["cursor"], bold=True)
        console = self.app.console
        lines = console.render_lines(
            format_row(self.rows[index], width),
            console.options.update_width(width),
            style=style,
            pad=True,
        )
        strips = [Strip(line, width) for line in lines[: self.row_height]]
        while len(strips) < self.row_height:
            strips.append(Strip.blank(width, style))
        return strips

    def _render_window(self) -> None:
        window = self.viewport.window()
        width = max(1, self.size.width)
        if width != self._strip_width:
            self._strips = {}
            self._strip_width = width

        strips = {}
        for index in range(window.start_index, window.end_index):
            strips[index] = self._strips.get(index) or self._render_row(index, width)
        self._strips = strips
        self.window = window
        self.refresh()

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        width = self.size.width
        blank = Strip.blank(width, self.rich_style)
        offset = scroll_y + y - int(self.window.translate_y)
        if offset < 0:
            return blank
        index = self.window.start_index + offset // self.row_height
        strips = self._strips.get(index)
        if strips is None:
            return blank
        return strips[offset % self.row_height].crop(scroll_x, scroll_x + width)

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self.viewport.on_scroll(new_value)
        self._throttle.request()

    def on_resize(self, event: events.Resize) -> None:
        self.viewport.on_resize(event.size.height)
        self.virtual_size = Size(event.size.width, int(self.viewport.content_height))
        self._throttle.request()

    def on_unmount(self) -> None:
        self._throttle.cancel()

    def watch_cursor(self, old_value: int, new_value: int) -> None:
        if not self.rows:
            return
        width = max(1, self.size.width)
        for index in (old_value, new_value):
            if index in self.window and 0 <= index < len(self.rows):
                self._strips[index] = self._render_row(index, width)
        self.scroll_to(y=self.viewport.scroll_to_index(new_value), animate=False)
        self.refresh()

    def _move_cursor(self, delta: int) -> None:
        if self.rows:
            self.cursor = max(0, min(len(self.rows) - 1, self.cursor + delta))

    @property
    def page_rows(self) -> int:
        return max(1, self.size.height // self.row_height)

    def action_cursor_up(self) -> None:
        self._move_cursor(-1)

    def action_cursor_down(self) -> None:
        self._move_cursor(1)

    def action_page_up(self) -> None:
        self._move_cursor(-self.page_rows)

    def action_page_down(self) -> None:
        self._move_cursor(self.page_rows)

    def action_first(self) -> None:
        self._move_cursor(-len(self.rows))

    def action_last(self) -> None:
        self._move_cursor(len(self.rows))

    def action_select(self) -> None:
        if 0 <= self.cursor < len(self.rows):
            self.post_message(FindingSelected(self.rows[self.cursor], self.cursor))

    def on_click(self, event: events.Click) -> None:
        index = int((event.y + self.scroll_y) // self.row_height)
        if 0 <= index < len(self.rows):
            self.cursor = index
            self.post_message(FindingSelected(self.rows[index], index))
