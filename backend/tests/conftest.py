"""Pytest setup: force temp files into workspace, plus a migrated entity store per test."""
from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest


def pytest_sessionstart(session) -> None:
    """Redirect temp files to a writable workspace path for tests."""
    tmp_root = Path(__file__).resolve().parent / ".tmp"
    tmp_root.mkdir(parents=True, exist_ok=True)
    for key in ("TMPDIR", "TEMP", "TMP"):
        os.environ[key] = str(tmp_root)
    tempfile.tempdir = str(tmp_root)
    os.environ["STORYFORGE_DATA_DIR"] = str(tmp_root / "data")
    os.environ.pop("STORYFORGE_GAME_CONSTANTS", None)

    class _WorkspaceTemporaryDirectory:
        """TemporaryDirectory variant that uses a workspace path with safe permissions."""

        def __init__(self, suffix: str | None = None, prefix: str | None = None, dir: str | None = None, **_kwargs):
            base = Path(dir) if dir else tmp_root
            name = f"{(prefix or 'tmp')}{uuid4().hex}{suffix or ''}"
            self._path = base / name
            self._path.mkdir(parents=True, exist_ok=False)

        def __enter__(self) -> str:
            return str(self._path)

        def __exit__(self, exc_type, exc, tb) -> None:
            shutil.rmtree(self._path, ignore_errors=True)

    tempfile.TemporaryDirectory = _WorkspaceTemporaryDirectory


@pytest.fixture(autouse=True)
def _fresh_game_constants():
    from backend.app.content.game_constants_loader import clear_game_constants_cache

    clear_game_constants_cache()
    yield
    clear_game_constants_cache()


@pytest.fixture
def db_path():
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    from backend.app.db.migrate import apply_schema

    apply_schema(tmp.name)
    yield tmp.name
    if os.path.exists(tmp.name):
        os.unlink(tmp.name)


@pytest.fixture
def store(db_path):
    from backend.app.db.store import EntityStore

    with EntityStore(db_path) as s:
        yield s


class Seeder:
    """Inserts raw rows; list columns are JSON-encoded like the importer writes them."""

    def __init__(self, store) -> None:
        self.store = store

    @staticmethod
    def _json(value: Any) -> Any:
        return json.dumps(value) if isinstance(value, list) else value

    def character(self, id: str, name: str, connections: int = 0, owns: list[str] | None = None) -> None:
        self.store.execute(
            "INSERT INTO characters (id, name, connections) VALUES (?, ?, ?)",
            (id, name, connections),
        )
        for element_id in owns or []:
            self.store.execute(
                "INSERT INTO character_owned_elements (character_id, element_id) VALUES (?, ?)",
                (id, element_id),
            )

    def element(self, id: str, name: str, type: str | None = None, description: str | None = None,
                first_available: str | None = None, calculated_memory_value: int = 0) -> None:
        self.store.execute(
            """INSERT INTO elements (id, name, type, description, first_available, calculated_memory_value)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (id, name, type, description, first_available, calculated_memory_value),
        )

    def puzzle(self, id: str, name: str, story_reveals: str | None = None, reward_ids: Any = None,
               narrative_threads: Any = None) -> None:
        self.store.execute(
            """INSERT INTO puzzles (id, name, story_reveals, reward_ids, narrative_threads)
               VALUES (?, ?, ?, ?, ?)""",
            (id, name, story_reveals, self._json(reward_ids), self._json(narrative_threads)),
        )

    def event(self, id: str, element_ids: Any, description: str | None = None) -> None:
        self.store.execute(
            "INSERT INTO timeline_events (id, description, element_ids) VALUES (?, ?, ?)",
            (id, description, self._json(element_ids)),
        )


@pytest.fixture
def seed(store) -> Seeder:
    return Seeder(store)
