"""Extracts memory token data from element descriptions and stores it per element.

Parsing lives in backend.app.compute.inline_tags; this module only reads
descriptions from the store, diffs and writes the derived columns.
"""
from __future__ import annotations

import logging
import time
from typing import Any

from backend.app.compute.base import FieldComputerSupport, StageStats
from backend.app.compute.errors import EntityNotFoundError
from backend.app.compute.inline_tags import parse_memory_tags
from backend.app.core.error_handling import log_error_with_context
from backend.app.models.entities import Element

logger = logging.getLogger(__name__)

TABLE = "elements"

MEMORY_FIELDS = (
    "rfid_tag",
    "value_rating",
    "memory_type",
    "memory_group",
    "group_multiplier",
    "calculated_memory_value",
)


def _changed(stored: dict[str, Any], computed: dict[str, Any]) -> bool:
    for field in MEMORY_FIELDS:
        old, new = stored.get(field), computed[field]
        if field == "group_multiplier":
            if old is None or float(old) != float(new):
                return True
        elif old != new:
            return True
    return False


class MemoryValueExtractor(FieldComputerSupport):
    field_family = "memory_value_extraction"

    def compute(self, element: Element) -> dict[str, Any]:
        """Memory fields for one element; never raises on bad tag text."""
        description = element.description if element is not None else None
        return parse_memory_tags(description, self.constants).to_fields()

    def compute_all(self) -> StageStats:
        """Re-extract every element with a description; processed counts rows written."""
        start = time.monotonic()
        rows = self.store.query(
            """SELECT id, name, description,
                      rfid_tag, value_rating, memory_type, memory_group,
                      group_multiplier, calculated_memory_value
               FROM elements
               WHERE description IS NOT NULL
               ORDER BY name"""
        )
        logger.debug("Found %d elements with descriptions", len(rows))

        stats = StageStats()
        tokens_found = 0
        for row in rows:
            try:
                fields = parse_memory_tags(row.get("description"), self.constants).to_fields()
                if fields["calculated_memory_value"] > 0 or fields["rfid_tag"]:
                    tokens_found += 1
                if not _changed(row, fields):
                    continue
                self.persist(TABLE, "id", row, fields)
                stats.processed += 1
                logger.debug("Updated %r: memory data extracted", row.get("name"))
            except Exception as e:
                log_error_with_context(e, self.field_family, entity_kind="element", entity_id=row.get("id"))
                stats.errors += 1

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Memory value extraction completed in %dms: %d elements scanned, %d tokens, %d updated (%d errors)",
            duration_ms,
            len(rows),
            tokens_found,
            stats.processed,
            stats.errors,
        )
        return stats

    def extract_all_memory_values(self) -> int:
        """Re-extract every element with a description. Returns rows written."""
        return self.compute_all().processed

    def extract_memory_value_for_element(self, element_id: str) -> int:
        """Recompute and persist one element. Returns its individual token value."""
        row = self.store.query_one(
            "SELECT id, name, description FROM elements WHERE id = ?",
            (element_id,),
        )
        if row is None:
            raise EntityNotFoundError("element", element_id)

        fields = parse_memory_tags(row.get("description"), self.constants).to_fields()
        self.persist(TABLE, "id", row, fields)
        logger.debug("Extracted memory value %d for element %r", fields["calculated_memory_value"], row.get("name"))
        return fields["calculated_memory_value"]

    def get_elements_with_memory_values(self) -> list[dict[str, Any]]:
        return self.store.query(
            """SELECT id, name, description, memory_type, memory_group, calculated_memory_value
               FROM elements
               WHERE calculated_memory_value > 0
               ORDER BY calculated_memory_value DESC, name"""
        )

    def get_element_value_stats(self) -> dict[str, Any]:
        """Element-level value statistics; average/min over valued elements only."""
        row = self.store.query_one(
            """SELECT
                 COUNT(*) AS total_elements,
                 COUNT(CASE WHEN calculated_memory_value > 0 THEN 1 END) AS elements_with_values,
                 SUM(calculated_memory_value) AS total_memory_value,
                 AVG(CASE WHEN calculated_memory_value > 0 THEN calculated_memory_value END) AS avg_memory_value,
                 MAX(calculated_memory_value) AS max_memory_value,
                 MIN(CASE WHEN calculated_memory_value > 0 THEN calculated_memory_value END) AS min_memory_value
               FROM elements"""
        ) or {}
        total = row.get("total_elements") or 0
        with_values = row.get("elements_with_values") or 0
        return {
            "total_elements": total,
            "elements_with_values": with_values,
            "elements_without_values": total - with_values,
            "total_memory_value": row.get("total_memory_value") or 0,
            "average_memory_value": round(row.get("avg_memory_value") or 0, 2),
            "max_memory_value": row.get("max_memory_value") or 0,
            "min_memory_value": row.get("min_memory_value") or 0,
            "value_extraction_rate": round(with_values / total * 100) if total else 0,
        }
