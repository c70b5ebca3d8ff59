"""Narrative threads: thematic tags connecting puzzles by story topic.

Threads are collected, in order, from:
1. the puzzle's story reveals
2. each reward element's name and description
3. the puzzle's name
and stored as an ordered list (first-match insertion order, not sorted).
"""
from __future__ import annotations

import logging
from typing import Any

from backend.app.compute.base import FieldComputerSupport, StageStats
from backend.app.core.error_handling import log_error_with_context
from backend.app.models.entities import Puzzle

logger = logging.getLogger(__name__)

TABLE = "puzzles"


class NarrativeThreadComputer(FieldComputerSupport):
    field_family = "narrative_threads"
    required_fields = ["id"]

    def extract_threads(self, text: str | None, threads: dict[str, None]) -> None:
        """Add themes found in text to the ordered set `threads`."""
        if not text:
            return
        lower = text.lower()
        for keyword, themes in self.constants.narrative_thread_keywords.items():
            if keyword in lower:
                for theme in themes:
                    threads.setdefault(theme, None)
        for category in self.constants.narrative_thread_categories:
            if category.lower() in lower:
                threads.setdefault(category, None)

    def compute(self, puzzle: Puzzle) -> dict[str, Any]:
        self.validate_required_fields(puzzle, self.required_fields, entity_kind="puzzle")
        threads: dict[str, None] = {}

        self.extract_threads(puzzle.story_reveals, threads)

        reward_ids = puzzle.reward_element_ids
        if reward_ids is None:
            logger.warning("Failed to parse reward_ids for puzzle %s; skipping reward elements", puzzle.id)
        else:
            for element_id in reward_ids:
                element = self.store.query_one(
                    "SELECT name, description FROM elements WHERE id = ?",
                    (element_id,),
                )
                if element is None:
                    logger.debug("Puzzle %s reward element %s not found", puzzle.id, element_id)
                    continue
                self.extract_threads(element.get("name"), threads)
                self.extract_threads(element.get("description"), threads)

        self.extract_threads(puzzle.name, threads)

        if not threads:
            return {"narrative_threads": [self.constants.narrative_thread_default]}
        return {"narrative_threads": list(threads)}

    def compute_all(self) -> StageStats:
        """Compute and persist narrative threads for every puzzle."""
        stats = StageStats()
        rows = self.store.query(f"SELECT * FROM {TABLE}")
        for row in rows:
            try:
                puzzle = Puzzle.from_row(row)
                fields = self.compute(puzzle)
                self.persist(TABLE, "id", puzzle, fields)
                stats.processed += 1
            except Exception as e:
                log_error_with_context(e, self.field_family, entity_kind="puzzle", entity_id=row.get("id"))
                stats.errors += 1
        logger.info("Narrative threads computed for %d puzzles (%d errors)", stats.processed, stats.errors)
        return stats
