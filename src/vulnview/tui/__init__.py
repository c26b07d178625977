"""
TUI (Terminal User Interface) module for vulnview.
Interactive table for browsing, filtering and sorting scan findings.
"""

from .app import VulnviewApp, run_tui

__all__ = ["VulnviewApp", "run_tui"]
