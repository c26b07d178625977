"""
Configuration file support for vulnview.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from vulnview.utils import schema
from vulnview.utils.store import DEFAULT_STORE_FILE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = [
    ".vulnview.yml",
    ".vulnview.yaml",
    "vulnview.yml",
    "vulnview.yaml",
]

DEFAULTS: Dict[str, Any] = {
    "search_mode": schema.SearchMode.LITERAL,
    "overscan_rows": 6,
    "row_height_fallback": 1,
    "render_delay_ms": 120,
    "store_path": DEFAULT_STORE_FILE,
    "log_level": "WARNING",
    "log_file": None,
}

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find configuration file by searching up the directory tree.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while True:
        for config_name in DEFAULT_CONFIG_FILES:
            config_path = current / config_name
            if config_path.exists() and config_path.is_file():
                logger.debug(f"Found config file: {config_path}")
                return config_path
        if current == current.parent:
            return None
        current = current.parent


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    logger.info(f"Loaded config from {config_path}")
    return config


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize configuration values.
    """
    validated = {}

    if "search_mode" in config:
        mode = config["search_mode"]
        try:
            validated["search_mode"] = schema.SearchMode(str(mode).lower())
        except ValueError:
            available = [m.value for m in schema.SearchMode]
            raise ValueError(f"Invalid search mode '{mode}'. Available: {available}")

    if "overscan_rows" in config:
        value = config["overscan_rows"]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError("'overscan_rows' must be a non-negative integer")
        validated["overscan_rows"] = value

    if "row_height_fallback" in config:
        value = config["row_height_fallback"]
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError("'row_height_fallback' must be a positive integer")
        validated["row_height_fallback"] = value

    if "render_delay_ms" in config:
        value = config["render_delay_ms"]
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            raise ValueError("'render_delay_ms' must be a non-negative number")
        validated["render_delay_ms"] = float(value)

    if "store_path" in config:
        validated["store_path"] = Path(config["store_path"]).expanduser()

    if "log_level" in config:
        level = str(config["log_level"]).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{level}'. Available: {LOG_LEVELS}")
        validated["log_level"] = level

    if "log_file" in config:
        value = config["log_file"]
        validated["log_file"] = Path(value).expanduser() if value else None

    unknown = set(config) - set(DEFAULTS)
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

    return validated


def merge_config(
    file_config: Dict[str, Any], cli_overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge defaults, file configuration and CLI overrides.
    CLI arguments take precedence over file configuration.
    """
    merged = dict(DEFAULTS)
    merged.update(file_config)

    for key, value in cli_overrides.items():
        if value is not None:
            merged[key] = value

    return merged


def resolve_config(
    config_path: Optional[Path] = None, cli_overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Load, validate and merge configuration for a CLI invocation."""
    path = config_path or find_config_file()
    file_config = validate_config(load_config_file(path)) if path else {}
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return merge_config(file_config, validate_config(overrides))


def create_sample_config() -> str:
    """Create a sample configuration file content."""
    return """# vulnview configuration file
# Save as .vulnview.yml in your project root

# Default search mode for the filter dialog: literal, regex, fuzzy
search_mode: literal

# Extra rows rendered above and below the visible part of the table
overscan_rows: 6

# Row height (terminal lines) used when a row cannot be measured
row_height_fallback: 1

# Quiet period before filter/sort changes are rendered
render_delay_ms: 120

# Where whitelist/ignore rules and presets are kept
# store_path: ~/.config/vulnview/store.json

# Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
log_level: WARNING

# Also write logs to this file
# log_file: ~/.config/vulnview/vulnview.log
"""


def save_sample_config(config_path: Path) -> None:
    """Save a sample configuration file."""
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(create_sample_config())
    logger.info(f"Created sample config file: {config_path}")
