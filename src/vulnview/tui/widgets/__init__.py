"""
TUI Widgets
Reusable widgets for the vulnview TUI.
"""

from .findings_view import COLUMNS, ColumnHeader, VirtualFindingsTable
from .messages import FindingSelected, SortRequested

__all__ = [
    # Messages
    "FindingSelected",
    "SortRequested",
    # Widgets
    "COLUMNS",
    "ColumnHeader",
    "VirtualFindingsTable",
]
