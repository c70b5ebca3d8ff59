"""Resolution paths: multi-label classification of characters, puzzles and elements.

Paths are OR-combined (an entity can support several at once):
- Black Market: memory tokens, black market cards, trading elements
- Detective: evidence, clues, investigation
- Third Path: strong community connections, rejection of authority
No matching rule yields the single default path.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from backend.app.compute.base import ENTITY_TABLES, FieldComputerSupport, StageStats
from backend.app.compute.errors import UnsupportedEntityKindError
from backend.app.core.error_handling import log_error_with_context
from backend.app.models.entities import Character, Element, Puzzle
from backend.app.models.game_constants import PathKeywords

logger = logging.getLogger(__name__)

SUPPORTED_KINDS = ("character", "puzzle", "element")

_MODELS = {
    "character": Character,
    "puzzle": Puzzle,
    "element": Element,
}


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(k and k in text for k in keywords)


class ResolutionPathComputer(FieldComputerSupport):
    field_family = "resolution_paths"
    required_fields = ["id"]

    def compute(self, entity: Any, entity_kind: str) -> dict[str, Any]:
        if entity_kind not in SUPPORTED_KINDS:
            raise UnsupportedEntityKindError(entity_kind, getattr(entity, "id", None))
        self.validate_required_fields(entity, self.required_fields, entity_kind=entity_kind)

        if entity_kind == "character":
            paths = self._character_paths(entity)
        elif entity_kind == "puzzle":
            paths = self._puzzle_paths(entity)
        else:
            paths = self._element_paths(entity)
        return {"resolution_paths": self._finalize(paths, entity_kind, entity.id)}

    def _finalize(self, paths: set[str], entity_kind: str, entity_id: Any) -> list[str]:
        valid = self.constants.valid_resolution_paths
        rejected = sorted(p for p in paths if p not in valid)
        if rejected:
            logger.warning("Dropping invalid resolution paths for %s %s: %s", entity_kind, entity_id, rejected)
        ordered = [p for p in self.constants.resolution_path_types if p in paths]
        return ordered or [self.constants.resolution_path_default]

    def _memory_type_match(self, type_text: str) -> bool:
        return any(m.lower() in type_text for m in self.constants.memory_element_types)

    def _keyword_paths(
        self,
        families: dict[str, PathKeywords],
        name: str,
        type_text: str,
    ) -> set[str]:
        paths: set[str] = set()
        for path, keywords in families.items():
            if _contains_any(type_text, keywords.types) or _contains_any(name, keywords.names):
                paths.add(path)
        return paths

    def _character_paths(self, character: Character) -> set[str]:
        owned = self.store.query(
            """SELECT e.name, e.type
               FROM elements e
               JOIN character_owned_elements coe ON e.id = coe.element_id
               WHERE coe.character_id = ?""",
            (character.id,),
        )
        paths: set[str] = set()
        for el in owned:
            name = (el.get("name") or "").lower()
            type_text = (el.get("type") or "").lower()
            paths |= self._keyword_paths(self.constants.character_path_keywords, name, type_text)
            if self._memory_type_match(type_text):
                paths.add(self.constants.memory_type_path)

        if (character.connections or 0) > self.constants.strong_link_threshold:
            paths.add(self.constants.strong_link_path)
        return paths

    def _puzzle_paths(self, puzzle: Puzzle) -> set[str]:
        threads = set(puzzle.narrative_threads)
        return {
            path
            for path, thread_names in self.constants.puzzle_thread_paths.items()
            if threads.intersection(thread_names)
        }

    def _element_paths(self, element: Element) -> set[str]:
        name = (element.name or "").lower()
        type_text = (element.type or "").lower()
        paths = self._keyword_paths(self.constants.element_path_keywords, name, type_text)
        if self._memory_type_match(type_text):
            paths.add(self.constants.memory_type_path)
        return paths

    def compute_all(self, entity_kind: str) -> StageStats:
        """Compute and persist resolution paths for every row of one kind."""
        if entity_kind not in SUPPORTED_KINDS:
            raise UnsupportedEntityKindError(entity_kind)
        table = ENTITY_TABLES[entity_kind]
        model = _MODELS[entity_kind]

        stats = StageStats()
        rows = self.store.query(f"SELECT * FROM {table}")
        for row in rows:
            try:
                entity = model.from_row(row)
                fields = self.compute(entity, entity_kind)
                self.persist(table, "id", entity, fields)
                stats.processed += 1
            except Exception as e:
                log_error_with_context(e, f"{entity_kind}_paths", entity_kind=entity_kind, entity_id=row.get("id"))
                stats.errors += 1
        logger.info("Paths computed for %d %ss (%d errors)", stats.processed, entity_kind, stats.errors)
        return stats
