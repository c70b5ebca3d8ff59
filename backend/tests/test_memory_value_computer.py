"""Per-character memory totals and the memory economy report."""
import pytest

from backend.app.compute.errors import EntityNotFoundError
from backend.app.compute.memory_value_computer import MemoryValueComputer
from backend.app.models.entities import Character
from backend.app.models.game_constants import GameConstants


@pytest.fixture
def owned(store, seed):
    seed.element("e1", "Shard A", calculated_memory_value=100)
    seed.element("e2", "Shard B", calculated_memory_value=50)
    seed.element("e3", "Mug", calculated_memory_value=0)
    seed.character("c1", "Alex", owns=["e1", "e2"])
    seed.character("c2", "Blake", owns=["e3"])
    seed.character("c3", "Casey")
    return store


def _total(store, character_id):
    return store.query_one("SELECT total_memory_value FROM characters WHERE id = ?", (character_id,))["total_memory_value"]


def test_totals_sum_owned_elements(owned):
    computer = MemoryValueComputer(owned)
    assert computer.compute(Character(id="c1")) == {"total_memory_value": 150}
    assert computer.compute(Character(id="c3")) == {"total_memory_value": 0}
    assert computer.compute_all_character_memory_values() == 3
    assert _total(owned, "c1") == 150
    assert _total(owned, "c2") == 0
    assert _total(owned, "c3") == 0


def test_single_character_and_not_found(owned):
    computer = MemoryValueComputer(owned)
    assert computer.compute_character_memory_value("c1") == 150
    assert _total(owned, "c1") == 150
    with pytest.raises(EntityNotFoundError) as exc:
        computer.compute_character_memory_value("ghost")
    assert exc.value.entity_id == "ghost"


def test_stats_exclude_zero_totals_from_average(owned, seed):
    seed.element("e4", "Shard C", calculated_memory_value=25)
    seed.character("c4", "Drew", owns=["e4"])
    computer = MemoryValueComputer(owned)
    computer.compute_all_character_memory_values()

    stats = computer.get_memory_value_stats()
    assert stats["total_characters"] == 4
    assert stats["characters_with_memory"] == 2
    assert stats["characters_without_memory"] == 2
    assert stats["total_memory_value"] == 175
    assert stats["average_memory_value"] == 87.5
    assert stats["min_memory_value"] == 25
    assert stats["max_memory_value"] == 150


def test_distribution_orders_by_total_then_name(owned):
    computer = MemoryValueComputer(owned)
    computer.compute_all_character_memory_values()
    rows = computer.get_memory_value_distribution()
    assert [r["name"] for r in rows] == ["Alex", "Blake", "Casey"]
    assert rows[0]["owned_elements_count"] == 2
    assert rows[0]["memory_elements_count"] == 2
    assert rows[1]["owned_elements_count"] == 1
    assert rows[1]["memory_elements_count"] == 0
    assert rows[2]["owned_elements_count"] == 0


def test_character_memory_elements(owned):
    rows = MemoryValueComputer(owned).get_character_memory_elements("c1")
    assert [r["id"] for r in rows] == ["e1", "e2"]


def test_tokens_by_group_skips_ungrouped(owned, seed):
    seed.element("g1", "Echo One", description="SF_ValueRating: [1] SF_Group: Echo (2x)")
    seed.element("g2", "Echo Two", description="SF_ValueRating: [1] SF_Group: Echo (2x)")
    owned.execute("UPDATE elements SET memory_group = 'Echo', group_multiplier = 2.0 WHERE id IN ('g1', 'g2')")
    seed.character("c9", "Owner", owns=["g1"])

    groups = MemoryValueComputer(owned).get_memory_tokens_by_group()
    assert list(groups) == ["Echo"]
    echo = groups["Echo"]
    assert echo["group_multiplier"] == 2.0
    owners = {t["id"]: t["current_owner"] for t in echo["tokens"]}
    assert owners == {"g1": "c9", "g2": None}


def test_run_compute_pipeline_report(owned):
    computer = MemoryValueComputer(owned, GameConstants(top_characters_limit=2))
    report = computer.run_compute_pipeline()
    assert report["success"] is True
    assert report["updated_characters"] == 3
    assert report["stats"]["total_memory_value"] == 150
    assert [c["id"] for c in report["top_characters"]] == ["c1", "c2"]
    assert report["memory_groups"] == []
    assert report["duration_ms"] >= 0


def test_compute_all_counts_row_failures(owned, monkeypatch):
    computer = MemoryValueComputer(owned)
    real_total = computer._total_for

    def flaky_total(character_id):
        if character_id == "c2":
            raise RuntimeError("aggregate failed")
        return real_total(character_id)

    monkeypatch.setattr(computer, "_total_for", flaky_total)
    stats = computer.compute_all()
    assert (stats.processed, stats.errors) == (2, 1)
    assert _total(owned, "c1") == 150
