"""Resolution paths: multi-label classification with a default sentinel."""
import json
import logging

import pytest

from backend.app.compute.errors import MissingFieldError, UnsupportedEntityKindError
from backend.app.compute.resolution_paths import ResolutionPathComputer
from backend.app.models.entities import Character, Element, Puzzle
from backend.app.models.game_constants import GameConstants, PathKeywords


def test_element_supports_several_paths_at_once(store):
    computer = ResolutionPathComputer(store)
    element = Element(id="e1", name="Black Market Investigation Clue", type="Evidence")
    paths = computer.compute(element, "element")["resolution_paths"]
    assert "Black Market" in paths
    assert "Detective" in paths
    assert paths == ["Black Market", "Detective"]


def test_element_without_matches_gets_default(store):
    computer = ResolutionPathComputer(store)
    element = Element(id="e1", name="Coffee Mug", type="Prop")
    assert computer.compute(element, "element") == {"resolution_paths": ["Unassigned"]}


def test_memory_element_type_maps_to_black_market(store):
    computer = ResolutionPathComputer(store)
    element = Element(id="e1", name="Shard", type="Memory Token Video")
    assert computer.compute(element, "element")["resolution_paths"] == ["Black Market"]


def test_character_paths_from_owned_elements_and_connections(store, seed):
    seed.element("e1", "Torn Clue", type="Prop")
    seed.element("e2", "Shard", type="Memory Token Audio")
    seed.character("c1", "Alex", connections=4, owns=["e1", "e2"])
    seed.character("c2", "Sam", connections=3)

    computer = ResolutionPathComputer(store)
    alex = Character.from_row(store.query_one("SELECT * FROM characters WHERE id = 'c1'"))
    sam = Character.from_row(store.query_one("SELECT * FROM characters WHERE id = 'c2'"))
    assert computer.compute(alex, "character")["resolution_paths"] == ["Black Market", "Detective", "Third Path"]
    # threshold is strict: exactly 3 connections is not a strong link
    assert computer.compute(sam, "character")["resolution_paths"] == ["Unassigned"]


def test_puzzle_paths_follow_stored_threads(store):
    computer = ResolutionPathComputer(store)
    puzzle = Puzzle(id="p1", name="Locked Safe", narrative_threads=["Memory Drug", "Community"])
    assert computer.compute(puzzle, "puzzle")["resolution_paths"] == ["Black Market", "Third Path"]
    assert computer.compute(Puzzle(id="p2", name="Crate"), "puzzle")["resolution_paths"] == ["Unassigned"]


def test_paths_outside_enum_are_dropped(store, caplog):
    constants = GameConstants(
        element_path_keywords={"Smuggler": PathKeywords(names=["crate"]), "Detective": PathKeywords(names=["clue"])}
    )
    computer = ResolutionPathComputer(store, constants)
    with caplog.at_level(logging.WARNING):
        paths = computer.compute(Element(id="e1", name="Crate"), "element")["resolution_paths"]
    assert paths == ["Unassigned"]
    assert "Smuggler" in caplog.text


def test_unsupported_kind_raises(store):
    computer = ResolutionPathComputer(store)
    with pytest.raises(UnsupportedEntityKindError) as exc:
        computer.compute(Element(id="e1"), "timeline_event")
    assert exc.value.entity_kind == "timeline_event"
    with pytest.raises(UnsupportedEntityKindError):
        computer.compute_all("location")


def test_missing_id_raises(store):
    computer = ResolutionPathComputer(store)
    with pytest.raises(MissingFieldError) as exc:
        computer.compute(Element(name="No Id"), "element")
    assert exc.value.missing == ["id"]


def test_compute_all_persists_json_lists(store, seed):
    seed.element("e1", "Trade Ledger", type="Document")
    seed.element("e2", "Evidence Bag", type="Evidence")

    stats = ResolutionPathComputer(store).compute_all("element")
    assert stats.processed == 2
    assert stats.errors == 0
    rows = {r["id"]: json.loads(r["resolution_paths"]) for r in store.query("SELECT id, resolution_paths FROM elements")}
    assert rows == {"e1": ["Black Market"], "e2": ["Detective"]}
