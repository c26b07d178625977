"""
Logging configuration for vulnview.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler
from textual.logging import TextualHandler

from vulnview.utils.config_file import LOG_LEVELS


def resolve_level(level: Union[str, int]) -> int:
    """Turn a level name from the config or the command line into a number."""
    if isinstance(level, int):
        return level
    name = str(level).upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Invalid log level '{level}'. Available: {LOG_LEVELS}")
    return getattr(logging, name)


def setup_logging(
    level: Union[str, int] = "WARNING",
    log_file: Optional[Path] = None,
    tui: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file to write logs to
        tui: Send console output to the Textual log instead of stderr, which
            would draw over the running viewer
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))
    root_logger.handlers.clear()

    if tui:
        handler: logging.Handler = TextualHandler()
        handler.setFormatter(logging.Formatter(fmt="%(levelname)s %(name)s: %(message)s"))
    else:
        # stderr keeps log output out of the way of printed tables
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
            enable_link_path=False,
        )
        handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    root_logger.addHandler(handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    # quiet third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("markdown_it").setLevel(logging.WARNING)


def configure_logging(settings: Dict[str, Any], tui: bool = False) -> None:
    """Set up logging from resolved configuration (``log_level``, ``log_file``)."""
    setup_logging(settings.get("log_level", "WARNING"), settings.get("log_file"), tui=tui)
