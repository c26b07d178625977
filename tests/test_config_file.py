"""Tests for configuration file loading"""

from pathlib import Path

import pytest
import yaml

from vulnview.utils import config_file
from vulnview.utils.schema import SearchMode


def test_validate_config_normalizes_values():
    validated = config_file.validate_config(
        {"search_mode": "REGEX", "overscan_rows": 3, "render_delay_ms": 50, "log_level": "debug"}
    )
    assert validated == {
        "search_mode": SearchMode.REGEX,
        "overscan_rows": 3,
        "render_delay_ms": 50.0,
        "log_level": "DEBUG",
    }


@pytest.mark.parametrize(
    "config",
    [
        {"search_mode": "telepathy"},
        {"overscan_rows": -1},
        {"overscan_rows": True},
        {"row_height_fallback": 0},
        {"render_delay_ms": "soon"},
        {"log_level": "LOUD"},
    ],
)
def test_validate_config_rejects_bad_values(config):
    with pytest.raises(ValueError):
        config_file.validate_config(config)


def test_unknown_keys_are_ignored():
    assert config_file.validate_config({"colour": "pink"}) == {}


def test_find_config_file_walks_up(tmp_path):
    (tmp_path / ".vulnview.yml").write_text("overscan_rows: 2\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert config_file.find_config_file(nested) == (tmp_path / ".vulnview.yml").resolve()


def test_load_config_file_errors(tmp_path):
    bad = tmp_path / "bad.yml"
    bad.write_text("search_mode: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid YAML"):
        config_file.load_config_file(bad)

    listing = tmp_path / "list.yml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        config_file.load_config_file(listing)


def test_merge_precedence():
    merged = config_file.merge_config(
        {"overscan_rows": 2, "log_level": "INFO"},
        {"overscan_rows": 9, "log_level": None},
    )
    assert merged["overscan_rows"] == 9
    assert merged["log_level"] == "INFO"
    assert merged["render_delay_ms"] == 120


def test_resolve_config(tmp_path):
    path = tmp_path / "vulnview.yml"
    path.write_text("search_mode: fuzzy\noverscan_rows: 2\nstore_path: ~/rules.json\n")
    settings = config_file.resolve_config(path, {"overscan_rows": 4, "search_mode": None})
    assert settings["search_mode"] is SearchMode.FUZZY
    assert settings["overscan_rows"] == 4
    assert settings["store_path"] == Path("~/rules.json").expanduser()


def test_sample_config_is_valid(tmp_path):
    """The generated sample must load back without errors."""
    path = tmp_path / ".vulnview.yml"
    config_file.save_sample_config(path)
    data = yaml.safe_load(path.read_text())
    validated = config_file.validate_config(data)
    assert validated["search_mode"] is SearchMode.LITERAL
    assert validated["overscan_rows"] == 6
