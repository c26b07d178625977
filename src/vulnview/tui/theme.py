"""
vulnview TUI theme - dark palette shared by the widgets and modal screens.
"""

COLORS = {
    "critical": "#FF5555",
    "high": "#FFB86C",
    "medium": "#F1FA8C",
    "low": "#8BE9FD",
    "info": "#BD93F9",
    "unknown": "#7D8590",
    "cyan": "#00D4FF",
    "green": "#50FA7B",
    "pink": "#FF6EC7",
    "muted": "#7D8590",
    "text": "#E6EDF3",
    "cursor": "#1C2128",
}

SEVERITY_STYLES = {
    "critical": f"bold {COLORS['critical']}",
    "high": f"bold {COLORS['high']}",
    "medium": f"bold {COLORS['medium']}",
    "low": COLORS["low"],
    "info": COLORS["info"],
    "unknown": COLORS["unknown"],
}

MAIN_CSS = """
Screen {
    background: #0D1117;
}

#summary-bar {
    height: 1;
    padding: 0 1;
    background: #161B22;
    color: #E6EDF3;
}

#column-header {
    height: 1;
    background: #161B22;
    color: #00D4FF;
    text-style: bold;
}

#findings-view {
    height: 1fr;
    background: #0D1117;
}

#stats-bar {
    height: 1;
    padding: 0 1;
    background: #161B22;
    color: #7D8590;
}

Footer {
    background: #161B22;
    color: #7D8590;
}
"""

MODAL_CSS = """
FiltersModal, FindingDetailModal {
    align: center middle;
    background: $background 60%;
}

.modal-container {
    width: 100;
    height: 44;
    background: $surface;
    border: solid $primary;
}

.modal-header {
    dock: top;
    height: 3;
    background: $surface-lighten-1;
    color: $text;
    padding: 1;
    border-bottom: solid $primary;
    text-style: bold;
}

.modal-content {
    height: 1fr;
    padding: 1 2;
}

.modal-row {
    height: auto;
    margin: 0 0 1 0;
}

.section-title {
    text-style: bold;
    color: $accent;
    margin: 1 0 0 0;
}

.rule-text {
    height: 5;
}

.search-hint {
    color: $text-muted;
    height: auto;
}

#query {
    width: 1fr;
}

#search-mode {
    width: 18;
}

#preset-list {
    width: 30;
}

#preset-name {
    width: 24;
}

.modal-actions {
    dock: bottom;
    height: 5;
    padding: 1;
    border-top: solid $primary;
    align: center middle;
}

.action-btn {
    min-width: 12;
    margin: 0 1;
}
"""
