"""
Exception types raised by the viewer core.
"""


class VulnviewError(Exception):
    """Base class for all viewer errors."""


class FilterApplyError(VulnviewError):
    """An apply action was rejected; the filter state was left untouched."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class QueryCompileError(FilterApplyError):
    """The search query holds a regular expression that does not compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid regex: {reason}")


class SeveritySelectionError(FilterApplyError):
    """Severity filtering is on but no severity was selected."""

    def __init__(self) -> None:
        super().__init__(
            'No severity selected - select at least one severity or turn "Show All" back on.'
        )


class PresetError(VulnviewError):
    """A preset could not be saved, loaded or deleted."""
