"""App config: DB path, game-constants override file, compute batch settings.

Env overrides:
  STORYFORGE_DB_PATH          SQLite database file
  STORYFORGE_GAME_CONSTANTS   optional YAML file merged over backend.app.constants
  COMPUTE_BATCH_WORKERS       thread count for compute_batch read fan-out
  ENABLE_PARALLEL_BATCH       set to 0 to run compute_batch sequentially
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from shared.config import DATA_DIR, _env_flag, _env_int

logger = logging.getLogger(__name__)


DEFAULT_DB_PATH = os.environ.get("STORYFORGE_DB_PATH", str(Path(DATA_DIR) / "storyforge.db"))

# Empty string means "use the built-in defaults only"
GAME_CONSTANTS_PATH = os.environ.get("STORYFORGE_GAME_CONSTANTS", "").strip()

COMPUTE_BATCH_WORKERS = max(1, _env_int("COMPUTE_BATCH_WORKERS", 4))
ENABLE_PARALLEL_BATCH = _env_flag("ENABLE_PARALLEL_BATCH", default=True)


def _log_resolved_config() -> None:
    """Log resolved compute config at startup."""
    constants_display = GAME_CONSTANTS_PATH or "built-in"
    logger.info(
        "Compute config: db=%s constants=%s batch_workers=%d parallel_batch=%s",
        DEFAULT_DB_PATH,
        constants_display,
        COMPUTE_BATCH_WORKERS,
        ENABLE_PARALLEL_BATCH,
    )


_log_resolved_config()
