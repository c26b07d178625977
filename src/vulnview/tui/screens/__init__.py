"""TUI Modal Screens"""

from .filters import FiltersModal
from .finding_detail import FindingDetailModal

__all__ = ["FiltersModal", "FindingDetailModal"]
