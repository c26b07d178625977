import json

import pytest

from vulnview.core.errors import PresetError
from vulnview.core.pipeline import FilterRequest
from vulnview.core.presets import (
    PRESETS_KEY,
    delete_preset,
    list_presets,
    load_preset,
    read_presets,
    save_preset,
)
from vulnview.utils.schema import SearchMode
from vulnview.utils.store import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


def test_save_and_load_preset(store):
    request = FilterRequest(
        show_all=False, severities={"critical": True}, fix_only=True,
        query="openssl", search_mode="regex", whitelist=["curl"],
    )
    save_preset(store, "  prod  ", request)
    assert list_presets(store) == ["prod"]

    base = FilterRequest(ignore=["zlib"])
    loaded = load_preset(store, "prod", base)
    assert loaded.show_all is False
    assert loaded.severities["critical"] is True
    assert loaded.fix_only is True
    assert loaded.query == "openssl"
    assert loaded.search_mode is SearchMode.REGEX
    # rule text is not part of a preset
    assert loaded.whitelist == []
    assert loaded.ignore == ["zlib"]


def test_presets_are_listed_sorted(store):
    for name in ("zeta", "alpha", "mid"):
        save_preset(store, name, FilterRequest())
    assert list_presets(store) == ["alpha", "mid", "zeta"]


def test_save_overwrites_existing_name(store):
    save_preset(store, "p", FilterRequest(query="one"))
    save_preset(store, "p", FilterRequest(query="two"))
    assert load_preset(store, "p").query == "two"


def test_save_requires_a_name(store):
    with pytest.raises(PresetError, match="Preset name required"):
        save_preset(store, "   ", FilterRequest())


def test_load_requires_a_name(store):
    with pytest.raises(PresetError, match="Select a preset to load"):
        load_preset(store, "")


def test_missing_presets(store):
    with pytest.raises(PresetError, match="Preset not found: nope"):
        load_preset(store, "nope")
    with pytest.raises(PresetError, match="Preset not found: nope"):
        delete_preset(store, "nope")


def test_delete_preset(store):
    save_preset(store, "a", FilterRequest())
    save_preset(store, "b", FilterRequest())
    delete_preset(store, "a")
    assert list_presets(store) == ["b"]


def test_unreadable_presets_are_ignored():
    assert read_presets(MemoryStore({PRESETS_KEY: "{broken"})) == {}
    assert read_presets(MemoryStore({PRESETS_KEY: "[]"})) == {}


def test_invalid_entries_are_skipped():
    data = {"good": {"query": "x"}, "bad": {"search_mode": "telepathy"}}
    presets = read_presets(MemoryStore({PRESETS_KEY: json.dumps(data)}))
    assert list(presets) == ["good"]
