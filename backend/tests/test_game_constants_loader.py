"""Game constants loader: built-in defaults, YAML overrides, validation."""
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from backend.app import config
from backend.app.content.game_constants_loader import clear_game_constants_cache, load_game_constants
from backend.app.models.game_constants import GameConstants


def test_defaults_match_builtin_tables() -> None:
    constants = load_game_constants()
    assert constants.memory_base_values[3] == 1000
    assert constants.memory_type_multipliers["Technical"] == 10.0
    assert constants.resolution_path_types == ["Black Market", "Detective", "Third Path"]
    assert constants.resolution_path_default == "Unassigned"
    assert constants.act_sequence["Act 1"] < constants.act_sequence["Act 2"]
    assert constants.strong_link_threshold == 3
    assert load_game_constants() is constants


def test_yaml_override_replaces_top_level_keys() -> None:
    with tempfile.TemporaryDirectory() as td:
        path = Path(td) / "constants.yaml"
        path.write_text(
            """
act_sequence:
  Act 2: 1
  Act 1: 2
strong_link_threshold: 5
element_path_keywords:
  Detective:
    names: [Magnifier]
""",
            encoding="utf-8",
        )
        constants = load_game_constants(path)
        assert constants.act_sequence == {"Act 2": 1, "Act 1": 2}
        assert constants.strong_link_threshold == 5
        assert constants.element_path_keywords["Detective"].names == ["magnifier"]
        assert "Black Market" not in constants.element_path_keywords
        # untouched keys keep their defaults
        assert constants.memory_base_values[5] == 10000


def test_env_path_used_when_no_argument(monkeypatch) -> None:
    with tempfile.TemporaryDirectory() as td:
        path = Path(td) / "env.yaml"
        path.write_text("top_characters_limit: 2\n", encoding="utf-8")
        monkeypatch.setattr(config, "GAME_CONSTANTS_PATH", str(path))
        clear_game_constants_cache()
        assert load_game_constants().top_characters_limit == 2


def test_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        load_game_constants("/nonexistent/constants.yaml")


def test_invalid_yaml_and_values_raise_value_error() -> None:
    with tempfile.TemporaryDirectory() as td:
        broken = Path(td) / "broken.yaml"
        broken.write_text("act_sequence: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="broken.yaml"):
            load_game_constants(broken)

        not_mapping = Path(td) / "list.yaml"
        not_mapping.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_game_constants(not_mapping)

        bad_multiplier = Path(td) / "bad.yaml"
        bad_multiplier.write_text("memory_type_multipliers:\n  Personal: 0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="multiplier"):
            load_game_constants(bad_multiplier)

        unknown_key = Path(td) / "unknown.yaml"
        unknown_key.write_text("bonus_table: {}\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_game_constants(unknown_key)


def test_default_sentinel_cannot_be_a_path_type() -> None:
    with pytest.raises(ValidationError):
        GameConstants(resolution_path_types=["Detective", "Unassigned"])
    with pytest.raises(ValidationError):
        GameConstants(resolution_path_types=[])
