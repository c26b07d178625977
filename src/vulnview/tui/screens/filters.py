"""Filters Modal Screen"""

from typing import Callable, Optional

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, Select, Static, TextArea

from vulnview.core.errors import PresetError
from vulnview.core.pipeline import FilterRequest
from vulnview.core.presets import delete_preset, list_presets, load_preset, save_preset
from vulnview.core.query import SEARCH_MODE_HINTS
from vulnview.utils.schema import SearchMode, Severity
from vulnview.utils.store import KeyValueStore

from ..theme import MODAL_CSS


class FiltersModal(ModalScreen[bool]):
    """Edit severity, fix, query and rule filters.

    ``on_apply`` commits a request and returns False when it was rejected,
    in which case the dialog stays open.
    """

    DEFAULT_CSS = MODAL_CSS

    BINDINGS = [
        Binding("escape", "cancel", "Close"),
    ]

    def __init__(
        self,
        request: FilterRequest,
        on_apply: Callable[[FilterRequest], bool],
        store: Optional[KeyValueStore] = None,
    ) -> None:
        super().__init__()
        self.request = request
        self.on_apply = on_apply
        self.store = store

    def compose(self) -> ComposeResult:
        req = self.request
        with Container(classes="modal-container"):
            yield Static("Filters", classes="modal-header")

            with VerticalScroll(classes="modal-content"):
                yield Checkbox("Show All", value=req.show_all, id="show-all")
                with Horizontal(classes="modal-row"):
                    for sev in Severity:
                        yield Checkbox(
                            sev.value.title(),
                            value=req.severities.get(sev.value, False),
                            disabled=req.show_all,
                            id=f"sev-{sev.value}",
                            classes="severity-check",
                        )
                yield Checkbox("Fix available only", value=req.fix_only, id="fix-only")

                with Horizontal(classes="modal-row"):
                    yield Input(value=req.query, placeholder="Search... (field:value supported)", id="query")
                    yield Select(
                        [(mode.value.title(), mode.value) for mode in SearchMode],
                        value=req.search_mode.value,
                        allow_blank=False,
                        id="search-mode",
                    )
                yield Static(SEARCH_MODE_HINTS[req.search_mode], classes="search-hint", id="search-hint")

                yield Label("Whitelist (one rule per line, any must match)", classes="section-title")
                yield TextArea("\n".join(req.whitelist), id="whitelist", classes="rule-text")
                yield Label("Ignore (one rule per line)", classes="section-title")
                yield TextArea("\n".join(req.ignore), id="ignore", classes="rule-text")

                if self.store is not None:
                    yield Label("Presets", classes="section-title")
                    with Horizontal(classes="modal-row"):
                        yield Select(
                            self._preset_options(),
                            prompt="Select a preset…",
                            id="preset-list",
                        )
                        yield Input(placeholder="Preset name", id="preset-name")
                        yield Button("Save", id="save-preset")
                        yield Button("Load", id="load-preset")
                        yield Button("Delete", variant="error", id="delete-preset")

            with Horizontal(classes="modal-actions"):
                yield Button("Apply", variant="success", classes="action-btn", id="apply-filters")
                yield Button("Reset", classes="action-btn", id="reset-filters")
                yield Button("Cancel", variant="error", classes="action-btn", id="cancel-filters")

    def _preset_options(self):
        return [(name, name) for name in list_presets(self.store)]

    def read_request(self) -> FilterRequest:
        """Current dialog values as an unapplied request."""
        return FilterRequest(
            show_all=self.query_one("#show-all", Checkbox).value,
            severities={
                sev.value: self.query_one(f"#sev-{sev.value}", Checkbox).value for sev in Severity
            },
            fix_only=self.query_one("#fix-only", Checkbox).value,
            query=self.query_one("#query", Input).value,
            search_mode=self.query_one("#search-mode", Select).value,
            whitelist=self.query_one("#whitelist", TextArea).text,
            ignore=self.query_one("#ignore", TextArea).text,
        )

    def fill(self, request: FilterRequest) -> None:
        """Load ``request`` into the dialog controls."""
        self.query_one("#show-all", Checkbox).value = request.show_all
        for sev in Severity:
            check = self.query_one(f"#sev-{sev.value}", Checkbox)
            check.value = request.severities.get(sev.value, False)
            check.disabled = request.show_all
        self.query_one("#fix-only", Checkbox).value = request.fix_only
        self.query_one("#query", Input).value = request.query
        self.query_one("#search-mode", Select).value = request.search_mode.value
        self.query_one("#whitelist", TextArea).text = "\n".join(request.whitelist)
        self.query_one("#ignore", TextArea).text = "\n".join(request.ignore)

    @on(Checkbox.Changed, "#show-all")
    def show_all_changed(self, event: Checkbox.Changed) -> None:
        for check in self.query(".severity-check"):
            check.disabled = event.value

    @on(Select.Changed, "#search-mode")
    def search_mode_changed(self, event: Select.Changed) -> None:
        if isinstance(event.value, str):
            self.query_one("#search-hint", Static).update(SEARCH_MODE_HINTS[SearchMode(event.value)])

    @on(Input.Submitted, "#query")
    @on(Button.Pressed, "#apply-filters")
    def apply(self) -> None:
        if self.on_apply(self.read_request()):
            self.dismiss(True)

    @on(Button.Pressed, "#reset-filters")
    def reset(self) -> None:
        self.fill(FilterRequest())

    @on(Button.Pressed, "#cancel-filters")
    def action_cancel(self) -> None:
        self.dismiss(False)

    def _selected_preset(self) -> str:
        value = self.query_one("#preset-list", Select).value
        return value if isinstance(value, str) else ""

    def _refresh_presets(self) -> None:
        self.query_one("#preset-list", Select).set_options(self._preset_options())

    @on(Button.Pressed, "#save-preset")
    def save_current_preset(self) -> None:
        name = self.query_one("#preset-name", Input).value
        try:
            save_preset(self.store, name, self.read_request())
        except PresetError as e:
            self.app.notify(str(e), severity="error")
            return
        self._refresh_presets()
        self.app.notify("Preset saved", timeout=2)

    @on(Button.Pressed, "#load-preset")
    def load_selected_preset(self) -> None:
        name = self._selected_preset()
        try:
            request = load_preset(self.store, name, self.read_request())
        except PresetError as e:
            self.app.notify(str(e), severity="error")
            return
        self.fill(request)
        self.query_one("#preset-name", Input).value = name
        self.app.notify("Preset loaded into the dialog (Apply to activate)", timeout=2.5)

    @on(Button.Pressed, "#delete-preset")
    def delete_selected_preset(self) -> None:
        name = self._selected_preset()
        if not name:
            return
        try:
            delete_preset(self.store, name)
        except PresetError as e:
            self.app.notify(str(e), severity="error")
            return
        self._refresh_presets()
        self.app.notify("Preset deleted", timeout=2)
