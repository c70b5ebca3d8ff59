"""Computes per-character memory value totals from owned elements.

Also reports the distribution across characters, summary statistics and the
memory groups available for future completion bonuses. Element values must be
extracted first (MemoryValueExtractor).
"""
from __future__ import annotations

import logging
import time
from typing import Any

from backend.app.compute.base import FieldComputerSupport, StageStats
from backend.app.compute.errors import EntityNotFoundError
from backend.app.core.error_handling import log_error_with_context
from backend.app.models.entities import Character

logger = logging.getLogger(__name__)

TABLE = "characters"

_TOTAL_SQL = """
SELECT COALESCE(SUM(e.calculated_memory_value), 0) AS total_memory_value
FROM elements e
JOIN character_owned_elements coe ON e.id = coe.element_id
WHERE coe.character_id = ?
"""


class MemoryValueComputer(FieldComputerSupport):
    field_family = "memory_value_aggregation"
    required_fields = ["id"]

    def _total_for(self, character_id: str) -> int:
        row = self.store.query_one(_TOTAL_SQL, (character_id,))
        return int((row or {}).get("total_memory_value") or 0)

    def compute(self, character: Character) -> dict[str, Any]:
        self.validate_required_fields(character, self.required_fields, entity_kind="character")
        return {"total_memory_value": self._total_for(character.id)}

    def compute_all(self) -> StageStats:
        """Update total_memory_value for every character; per-row failures are counted."""
        start = time.monotonic()
        characters = self.store.query("SELECT id, name FROM characters ORDER BY name")
        logger.debug("Processing %d characters", len(characters))

        stats = StageStats()
        for character in characters:
            try:
                total = self._total_for(character["id"])
                self.persist(TABLE, "id", character, {"total_memory_value": total})
                stats.processed += 1
                if total > 0:
                    logger.debug("Character %r: total memory value = %d", character.get("name"), total)
            except Exception as e:
                log_error_with_context(e, self.field_family, entity_kind="character", entity_id=character.get("id"))
                stats.errors += 1

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Memory value computation completed in %dms: %d characters updated (%d errors)",
            duration_ms,
            stats.processed,
            stats.errors,
        )
        return stats

    def compute_all_character_memory_values(self) -> int:
        """Update total_memory_value for every character. Returns characters updated."""
        return self.compute_all().processed

    def compute_character_memory_value(self, character_id: str) -> int:
        character = self.store.query_one("SELECT id, name FROM characters WHERE id = ?", (character_id,))
        if character is None:
            raise EntityNotFoundError("character", character_id)
        total = self._total_for(character_id)
        self.persist(TABLE, "id", character, {"total_memory_value": total})
        logger.debug("Character %r: computed total memory value = %d", character.get("name"), total)
        return total

    def get_memory_value_distribution(self) -> list[dict[str, Any]]:
        """Characters by total desc then name, with owned and memory-bearing counts."""
        return self.store.query(
            """SELECT
                 c.id,
                 c.name,
                 COALESCE(c.total_memory_value, 0) AS total_memory_value,
                 COUNT(coe.element_id) AS owned_elements_count,
                 COUNT(CASE WHEN e.calculated_memory_value > 0 THEN 1 END) AS memory_elements_count
               FROM characters c
               LEFT JOIN character_owned_elements coe ON c.id = coe.character_id
               LEFT JOIN elements e ON coe.element_id = e.id
               GROUP BY c.id, c.name, c.total_memory_value
               ORDER BY total_memory_value DESC, c.name"""
        )

    def get_memory_value_stats(self) -> dict[str, Any]:
        """Average and min only consider characters with a positive total."""
        row = self.store.query_one(
            """SELECT
                 COUNT(*) AS total_characters,
                 COUNT(CASE WHEN total_memory_value > 0 THEN 1 END) AS characters_with_memory,
                 SUM(total_memory_value) AS total_memory_value,
                 AVG(CASE WHEN total_memory_value > 0 THEN total_memory_value END) AS avg_memory_value,
                 MAX(total_memory_value) AS max_memory_value,
                 MIN(CASE WHEN total_memory_value > 0 THEN total_memory_value END) AS min_memory_value
               FROM characters"""
        ) or {}
        total_characters = row.get("total_characters") or 0
        with_memory = row.get("characters_with_memory") or 0
        return {
            "total_characters": total_characters,
            "characters_with_memory": with_memory,
            "characters_without_memory": total_characters - with_memory,
            "total_memory_value": row.get("total_memory_value") or 0,
            "average_memory_value": round(row.get("avg_memory_value") or 0, 2),
            "max_memory_value": row.get("max_memory_value") or 0,
            "min_memory_value": row.get("min_memory_value") or 0,
        }

    def get_character_memory_elements(self, character_id: str) -> list[dict[str, Any]]:
        return self.store.query(
            """SELECT e.id, e.name, e.rfid_tag, e.value_rating, e.memory_type, e.memory_group,
                      e.group_multiplier, e.calculated_memory_value, e.description
               FROM elements e
               JOIN character_owned_elements coe ON e.id = coe.element_id
               WHERE coe.character_id = ? AND e.calculated_memory_value > 0
               ORDER BY e.calculated_memory_value DESC, e.name""",
            (character_id,),
        )

    def get_memory_tokens_by_group(self) -> dict[str, dict[str, Any]]:
        """Grouped tokens only; ungrouped elements are left out entirely."""
        tokens = self.store.query(
            """SELECT e.id, e.name, e.rfid_tag, e.value_rating, e.memory_type, e.memory_group,
                      e.group_multiplier, e.calculated_memory_value,
                      coe.character_id AS current_owner
               FROM elements e
               LEFT JOIN character_owned_elements coe ON e.id = coe.element_id
               WHERE e.memory_group IS NOT NULL
               ORDER BY e.memory_group, e.name"""
        )
        grouped: dict[str, dict[str, Any]] = {}
        for token in tokens:
            name = token["memory_group"]
            bucket = grouped.setdefault(
                name,
                {"group_name": name, "group_multiplier": token.get("group_multiplier"), "tokens": []},
            )
            bucket["tokens"].append(token)
        return grouped

    def run_compute_pipeline(self) -> dict[str, Any]:
        """Aggregate totals and build the memory economy report."""
        start = time.monotonic()
        logger.info("Starting memory value computation pipeline...")

        updated = self.compute_all_character_memory_values()
        stats = self.get_memory_value_stats()
        distribution = self.get_memory_value_distribution()
        groups = self.get_memory_tokens_by_group()

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Memory value pipeline completed in %dms: %d characters, total value %s, groups: %s",
            duration_ms,
            updated,
            stats["total_memory_value"],
            ", ".join(groups) or "none",
        )
        return {
            "success": True,
            "duration_ms": duration_ms,
            "updated_characters": updated,
            "stats": stats,
            "top_characters": distribution[: self.constants.top_characters_limit],
            "memory_groups": list(groups),
        }
