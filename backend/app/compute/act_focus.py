"""Act focus for timeline events: the dominant act among referenced elements.

Ties on count go to the act that comes first in the configured act sequence
table, not to the alphabetically smaller label.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from backend.app.compute.base import FieldComputerSupport, StageStats
from backend.app.core.error_handling import log_error_with_context
from backend.app.models.entities import TimelineEvent

logger = logging.getLogger(__name__)

TABLE = "timeline_events"


class ActFocusComputer(FieldComputerSupport):
    field_family = "act_focus"
    required_fields = ["id"]

    def _sequence_key(self, act: str) -> tuple[int, float, str]:
        # Known acts first by sequence value; unknown acts after, by label
        seq = self.constants.act_sequence.get(act)
        if seq is None:
            return (1, 0.0, act)
        return (0, float(seq), "")

    def pick_act(self, counts: Counter) -> str | None:
        """Highest count wins; ties resolved by the act sequence table."""
        if not counts:
            return None
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], self._sequence_key(kv[0])))
        return ranked[0][0]

    def compute(self, event: TimelineEvent) -> dict[str, Any]:
        self.validate_required_fields(event, self.required_fields, entity_kind="timeline_event")

        element_ids = event.element_ids
        if element_ids is None:
            logger.warning("Timeline event %s has malformed element_ids; act_focus cleared", event.id)
            return {"act_focus": None}
        if not element_ids:
            return {"act_focus": None}

        placeholders = ",".join("?" for _ in element_ids)
        rows = self.store.query(
            f"SELECT id, first_available FROM elements WHERE id IN ({placeholders})",
            element_ids,
        )
        counts: Counter = Counter(r["first_available"] for r in rows if r.get("first_available"))
        act = self.pick_act(counts)
        if act is not None and act not in self.constants.valid_acts:
            logger.warning("Timeline event %s: computed act %r is not a valid act; act_focus cleared", event.id, act)
            return {"act_focus": None}
        return {"act_focus": act}

    def compute_all(self) -> StageStats:
        """Compute and persist act focus for every timeline event."""
        stats = StageStats()
        rows = self.store.query(f"SELECT * FROM {TABLE}")
        for row in rows:
            try:
                event = TimelineEvent.from_row(row)
                fields = self.compute(event)
                self.persist(TABLE, "id", event, fields)
                stats.processed += 1
            except Exception as e:
                log_error_with_context(e, self.field_family, entity_kind="timeline_event", entity_id=row.get("id"))
                stats.errors += 1
        logger.info("Act focus computed for %d events (%d errors)", stats.processed, stats.errors)
        return stats
