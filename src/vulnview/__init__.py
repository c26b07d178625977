"""
vulnview - interactive viewer for vulnerability scan findings
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
