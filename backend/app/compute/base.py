"""Shared capability contract for derived-field computers.

Each computer is a tagged variant (field_family) that implements compute() and
reuses FieldComputerSupport for batching, persistence and validation. Derived
lists are JSON-encoded in persist() and nowhere else.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Protocol, runtime_checkable

from backend.app import config
from backend.app.compute.errors import FieldComputationError, MissingFieldError
from backend.app.content.game_constants_loader import load_game_constants
from backend.app.db.store import EntityStore
from backend.app.models.entities import encode_list
from backend.app.models.game_constants import GameConstants

logger = logging.getLogger(__name__)

ENTITY_TABLES: dict[str, str] = {
    "character": "characters",
    "element": "elements",
    "puzzle": "puzzles",
    "timeline_event": "timeline_events",
}

# Columns the pipeline may overwrite, per table
PERSISTABLE_COLUMNS: dict[str, frozenset[str]] = {
    "characters": frozenset({"resolution_paths", "total_memory_value"}),
    "elements": frozenset({
        "resolution_paths",
        "rfid_tag",
        "value_rating",
        "memory_type",
        "memory_group",
        "group_multiplier",
        "calculated_memory_value",
    }),
    "puzzles": frozenset({"resolution_paths", "narrative_threads"}),
    "timeline_events": frozenset({"act_focus"}),
}


@dataclass
class StageStats:
    processed: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@runtime_checkable
class DerivedFieldComputer(Protocol):
    """Capability contract every computer satisfies."""

    field_family: str

    def compute(self, entity: Any, *args: Any) -> dict[str, Any]:
        ...

    def compute_batch(self, entities: list[Any], *args: Any) -> list[dict[str, Any]]:
        ...

    def persist(self, table: str, id_field: str, entity: Any, fields: Mapping[str, Any]) -> int:
        ...

    def validate_required_fields(self, entity: Any, required: list[str], entity_kind: str | None = None) -> None:
        ...


def entity_id_of(entity: Any) -> Any:
    if entity is None:
        return None
    if isinstance(entity, Mapping):
        return entity.get("id")
    return getattr(entity, "id", None)


def _field_value(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def _to_column_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return encode_list(list(value))
    return value


class FieldComputerSupport:
    """Batching, persistence and validation shared by all computers."""

    field_family = "base"

    def __init__(
        self,
        store: EntityStore,
        constants: GameConstants | None = None,
        batch_workers: int | None = None,
    ) -> None:
        if store is None:
            raise ValueError("Entity store required")
        self.store = store
        self.constants = constants or load_game_constants()
        if batch_workers is None:
            batch_workers = config.COMPUTE_BATCH_WORKERS if config.ENABLE_PARALLEL_BATCH else 1
        self.batch_workers = max(1, batch_workers)

    def compute(self, entity: Any, *args: Any) -> dict[str, Any]:
        raise NotImplementedError(f"{type(self).__name__}.compute() must be implemented")

    def compute_batch(self, entities: list[Any], *args: Any) -> list[dict[str, Any]]:
        """Compute fields for many entities, results in input order.

        Reads fan out across worker threads; each entity depends only on
        committed state, never on sibling results. Nothing is persisted here.
        """
        if not isinstance(entities, list):
            raise TypeError("entities must be a list")
        if not entities:
            return []
        if self.batch_workers <= 1 or len(entities) == 1:
            return [self.compute(e, *args) for e in entities]
        workers = min(self.batch_workers, len(entities))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.field_family) as pool:
            return list(pool.map(lambda e: self.compute(e, *args), entities))

    def persist(self, table: str, id_field: str, entity: Any, fields: Mapping[str, Any]) -> int:
        """UPDATE table SET fields WHERE id_field = entity id. Returns rowcount."""
        if not fields:
            return 0
        allowed = PERSISTABLE_COLUMNS.get(table)
        if allowed is None:
            raise FieldComputationError(f"Unknown table: {table}", entity_id=entity_id_of(entity))
        if id_field != "id":
            raise FieldComputationError(f"Unsupported id field for {table}: {id_field}", entity_id=entity_id_of(entity))
        unknown = [f for f in fields if f not in allowed]
        if unknown:
            raise FieldComputationError(
                f"Columns not writable on {table}: {', '.join(sorted(unknown))}",
                entity_id=entity_id_of(entity),
            )

        entity_id = _field_value(entity, id_field)
        assignments = ", ".join(f"{col} = ?" for col in fields)
        values = [_to_column_value(v) for v in fields.values()]
        values.append(entity_id)
        try:
            return self.store.execute(f"UPDATE {table} SET {assignments} WHERE {id_field} = ?", values)
        except Exception as e:
            raise FieldComputationError(f"Failed to update {table}: {e}", entity_id=entity_id) from e

    def validate_required_fields(self, entity: Any, required: list[str], entity_kind: str | None = None) -> None:
        """Raise MissingFieldError for fields that are absent, None or empty strings."""
        if entity is None:
            raise MissingFieldError(list(required), entity_kind=entity_kind)
        missing = []
        for name in required:
            value = _field_value(entity, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if missing:
            raise MissingFieldError(missing, entity_kind=entity_kind, entity_id=entity_id_of(entity))
