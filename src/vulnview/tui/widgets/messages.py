"""
Custom Message Types
Message-passing between the findings widgets and the app.
"""

from textual.message import Message

from vulnview.utils.schema import Finding


class FindingSelected(Message):
    """Posted when the user opens a finding."""

    def __init__(self, finding: Finding, index: int) -> None:
        self.finding = finding
        self.index = index
        super().__init__()


class SortRequested(Message):
    """Posted when the user picks a sort column."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__()
