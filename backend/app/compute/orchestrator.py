"""Runs the derived-field computers in a fixed order inside one transaction.

Stage order for a full recompute:
    act_focus -> character_paths -> puzzle_paths -> element_paths
    -> narrative_threads -> memory_extraction -> memory_aggregation

Puzzle paths read the narrative threads already stored on each puzzle, so a
pass picks up threads written by the previous pass, not this one.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from backend.app.compute.act_focus import ActFocusComputer
from backend.app.compute.base import ENTITY_TABLES, StageStats
from backend.app.compute.errors import (
    ComputePipelineError,
    EntityComputationError,
    EntityNotFoundError,
    UnsupportedEntityKindError,
)
from backend.app.compute.memory_value_computer import MemoryValueComputer
from backend.app.compute.memory_value_extractor import MemoryValueExtractor
from backend.app.compute.narrative_threads import NarrativeThreadComputer
from backend.app.compute.resolution_paths import ResolutionPathComputer
from backend.app.content.game_constants_loader import load_game_constants
from backend.app.core.error_handling import log_error_with_context
from backend.app.db.store import EntityStore
from backend.app.models.entities import Character, Element, Puzzle, TimelineEvent
from backend.app.models.game_constants import GameConstants

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    processed: int = 0
    errors: int = 0
    details: dict[str, StageStats] = field(default_factory=dict)

    def add(self, stage: str, stats: StageStats) -> None:
        self.details[stage] = stats
        self.processed += stats.processed
        self.errors += stats.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "errors": self.errors,
            "details": {stage: stats.to_dict() for stage, stats in self.details.items()},
        }


class ComputeOrchestrator:
    """Owns transaction scope for full and single-entity recomputes."""

    def __init__(self, store: EntityStore, constants: GameConstants | None = None) -> None:
        if store is None:
            raise ValueError("Entity store required")
        self.store = store
        self.constants = constants or load_game_constants()
        self.act_focus = ActFocusComputer(store, self.constants)
        self.resolution_paths = ResolutionPathComputer(store, self.constants)
        self.narrative_threads = NarrativeThreadComputer(store, self.constants)
        self.memory_extractor = MemoryValueExtractor(store, self.constants)
        self.memory_computer = MemoryValueComputer(store, self.constants)

    def _stages(self) -> list[tuple[str, Callable[[], StageStats]]]:
        return [
            ("act_focus", self.act_focus.compute_all),
            ("character_paths", lambda: self.resolution_paths.compute_all("character")),
            ("puzzle_paths", lambda: self.resolution_paths.compute_all("puzzle")),
            ("element_paths", lambda: self.resolution_paths.compute_all("element")),
            ("narrative_threads", self.narrative_threads.compute_all),
            ("memory_extraction", self.memory_extractor.compute_all),
            ("memory_aggregation", self.memory_computer.compute_all),
        ]

    def compute_all(self) -> RunReport:
        """Recompute every derived field. All or nothing: a stage failure rolls back the run."""
        start = time.monotonic()
        report = RunReport()
        stage = "begin"
        logger.info("Starting full derived-field compute")
        try:
            with self.store.transaction():
                for stage, run in self._stages():
                    stats = run()
                    report.add(stage, stats)
                    logger.debug("Stage %s: %s", stage, stats.to_dict())
        except Exception as e:
            log_error_with_context(e, stage, entity_kind="pipeline")
            raise ComputePipelineError(stage, str(e)) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Derived-field compute completed in %dms: %d processed, %d errors",
            duration_ms,
            report.processed,
            report.errors,
        )
        return report

    def _fetch(self, kind: str, entity_id: str) -> dict[str, Any]:
        table = ENTITY_TABLES.get(kind)
        if table is None:
            raise UnsupportedEntityKindError(kind, entity_id)
        row = self.store.query_one(f"SELECT * FROM {table} WHERE id = ?", (entity_id,))
        if row is None:
            raise EntityNotFoundError(kind, entity_id)
        return row

    def _compute_fields(self, kind: str, row: dict[str, Any]) -> dict[str, Any]:
        if kind == "timeline_event":
            return self.act_focus.compute(TimelineEvent.from_row(row))
        if kind == "character":
            return self.resolution_paths.compute(Character.from_row(row), "character")
        if kind == "element":
            return self.resolution_paths.compute(Element.from_row(row), "element")
        # Puzzle: paths use the threads stored before this call
        puzzle = Puzzle.from_row(row)
        fields = dict(self.resolution_paths.compute(puzzle, "puzzle"))
        fields.update(self.narrative_threads.compute(puzzle))
        return fields

    def compute_entity(self, kind: str, entity_id: str) -> dict[str, Any]:
        """Recompute one entity's derived fields in its own transaction; returns the new values."""
        try:
            with self.store.transaction():
                row = self._fetch(kind, entity_id)
                fields = self._compute_fields(kind, row)
                self._persist_fields(kind, row, fields)
        except Exception as e:
            log_error_with_context(e, "compute_entity", entity_kind=kind, entity_id=entity_id)
            raise EntityComputationError(kind, entity_id, str(e)) from e
        logger.debug("Recomputed %s %s: %s", kind, entity_id, sorted(fields))
        return fields

    def _persist_fields(self, kind: str, row: dict[str, Any], fields: dict[str, Any]) -> int:
        return self.resolution_paths.persist(ENTITY_TABLES[kind], "id", row, fields)
