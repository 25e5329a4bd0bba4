"""Level curve loading.

The level curve lives in the ``grid_levels`` GameConfig row so it can be tuned
without code changes. Missing or malformed keys fall back to LevelConfig
defaults.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from drysland.grid.config import LevelConfig
from drysland.logging_utils import get_logger
from drysland.models import GameConfig

log = get_logger("levels")

GRID_LEVELS_KEY = "grid_levels"

# Default curve (can be overridden via GameConfig row 'grid_levels')
DEFAULT_GRID_LEVELS: Dict[str, Any] = LevelConfig().to_dict()


def load_level_config() -> LevelConfig:
    try:
        raw = GameConfig.get(GRID_LEVELS_KEY)
    except Exception as exc:  # table missing before first create_all
        log.warn(event="level_config_unavailable", error=repr(exc))
        return LevelConfig()
    if not raw:
        return LevelConfig()
    try:
        data = json.loads(raw)
    except ValueError:
        log.warn(event="level_config_invalid_json", key=GRID_LEVELS_KEY)
        return LevelConfig()
    if not isinstance(data, dict):
        return LevelConfig()
    # Merge defaults so missing keys fall back
    merged = dict(DEFAULT_GRID_LEVELS)
    merged.update(data)
    return LevelConfig.from_dict(merged)
