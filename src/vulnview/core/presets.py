"""
Named filter presets kept in the key-value store.

A preset snapshots the dialog values (not the rule text). Loading a preset
only produces a request; it takes effect once the user applies it.
"""

import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from vulnview.core.errors import PresetError
from vulnview.core.pipeline import FilterRequest, default_severities
from vulnview.utils.schema import SearchMode
from vulnview.utils.store import KeyValueStore

logger = logging.getLogger(__name__)

PRESETS_KEY = "filter_presets"


class Preset(BaseModel):
    show_all: bool = True
    severities: Dict[str, bool] = Field(default_factory=default_severities)
    fix_only: bool = False
    query: str = ""
    search_mode: SearchMode = SearchMode.LITERAL


def read_presets(store: KeyValueStore) -> Dict[str, Preset]:
    raw = store.get(PRESETS_KEY)
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Ignoring unreadable presets: {e}")
        return {}
    if not isinstance(data, dict):
        return {}

    presets = {}
    for name, value in data.items():
        try:
            presets[name] = Preset.model_validate(value)
        except ValidationError as e:
            logger.warning(f"Skipping invalid preset {name!r}: {e}")
    return presets


def _write_presets(store: KeyValueStore, presets: Dict[str, Preset]) -> None:
    store.set(
        PRESETS_KEY,
        json.dumps({name: p.model_dump(mode="json") for name, p in presets.items()}),
    )


def list_presets(store: KeyValueStore) -> List[str]:
    return sorted(read_presets(store))


def save_preset(store: KeyValueStore, name: str, request: FilterRequest) -> Preset:
    name = (name or "").strip()
    if not name:
        raise PresetError("Preset name required")
    presets = read_presets(store)
    preset = Preset(
        show_all=request.show_all,
        severities=dict(request.severities),
        fix_only=request.fix_only,
        query=request.query,
        search_mode=request.search_mode,
    )
    presets[name] = preset
    _write_presets(store, presets)
    logger.info(f"Saved preset {name!r}")
    return preset


def delete_preset(store: KeyValueStore, name: str) -> None:
    presets = read_presets(store)
    if name not in presets:
        raise PresetError(f"Preset not found: {name}")
    del presets[name]
    _write_presets(store, presets)
    logger.info(f"Deleted preset {name!r}")


def load_preset(
    store: KeyValueStore, name: str, base: Optional[FilterRequest] = None
) -> FilterRequest:
    """Return ``base`` with the preset's values filled in."""
    if not name:
        raise PresetError("Select a preset to load")
    preset = read_presets(store).get(name)
    if preset is None:
        raise PresetError(f"Preset not found: {name}")
    base = base or FilterRequest()
    return base.model_copy(update=preset.model_dump())
