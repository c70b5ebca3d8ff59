"""Shared configuration helpers used by the backend and script entry points."""
from __future__ import annotations

import os
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean env flag."""
    val = os.environ.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    """Read int env value; falls back to default when unset or invalid."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Project root: resolve relative to this file's location
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Data directory (SQLite database, optional constants overrides) - absolute to avoid CWD dependency
DATA_DIR = os.environ.get("STORYFORGE_DATA_DIR", str(_PROJECT_ROOT / "data"))
