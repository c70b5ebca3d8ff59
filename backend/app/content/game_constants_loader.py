"""Game constants loader with module-level cache.

Built-in defaults come from backend.app.constants. An optional YAML file may
override any top-level key; keys it omits keep their defaults. Tables are
replaced whole, not merged key by key, so an override of act_sequence fully
defines the tie-break order.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from backend.app.models.game_constants import GameConstants

logger = logging.getLogger(__name__)

_CONSTANTS_CACHE: dict[str, GameConstants] = {}
_DEFAULT_KEY = "<built-in>"


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _abs(path_value: str | Path) -> Path:
    p = Path(path_value)
    return p if p.is_absolute() else _repo_root() / p


def _load_yaml(path: Path) -> Any:
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def _resolve_path(path: str | Path | None) -> Path | None:
    if path:
        return _abs(path)
    from backend.app.config import GAME_CONSTANTS_PATH

    if GAME_CONSTANTS_PATH:
        return _abs(GAME_CONSTANTS_PATH)
    return None


def load_game_constants(path: str | Path | None = None) -> GameConstants:
    """Return validated game constants, cached per resolved file.

    Precedence:
    1) explicit path argument
    2) STORYFORGE_GAME_CONSTANTS env var
    3) built-in defaults
    """
    resolved = _resolve_path(path)
    key = str(resolved) if resolved else _DEFAULT_KEY
    cached = _CONSTANTS_CACHE.get(key)
    if cached is not None:
        return cached

    if resolved is None:
        constants = GameConstants()
    else:
        if not resolved.exists():
            raise FileNotFoundError(f"Game constants file not found: {resolved}")
        try:
            data = _load_yaml(resolved)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in game constants file {resolved.name}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Game constants file {resolved.name} must contain a mapping at top level")
        try:
            constants = GameConstants(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid game constants in {resolved.name}: {e}") from e
        logger.info("Loaded game constants overrides from %s (%d keys)", resolved, len(data))

    _CONSTANTS_CACHE[key] = constants
    return constants


def clear_game_constants_cache() -> None:
    _CONSTANTS_CACHE.clear()
