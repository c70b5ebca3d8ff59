"""Typed errors raised by the derived-field computers and the orchestrator.

Per-record degradations (bad inline tags, undecodable lists, unknown ids) are
never raised; these cover structural failures only.
"""
from __future__ import annotations

from typing import Any

from backend.app.core.error_handling import create_error_response


class FieldComputationError(Exception):
    """Base error; carries the offending entity kind and id."""

    error_code = "FIELD_COMPUTATION_FAILED"

    def __init__(self, message: str, entity_kind: str | None = None, entity_id: Any = None):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        self.reason = message
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        details: dict[str, Any] = {}
        if self.entity_kind:
            details["entity_kind"] = self.entity_kind
        if self.entity_id is not None:
            details["entity_id"] = self.entity_id
        return create_error_response(
            self.error_code, str(self), stage=getattr(self, "stage", None), details=details or None
        )


class MissingFieldError(FieldComputationError):
    error_code = "MISSING_REQUIRED_FIELDS"

    def __init__(self, missing: list[str], entity_kind: str | None = None, entity_id: Any = None):
        self.missing = list(missing)
        label = entity_kind or "entity"
        super().__init__(
            f"{label} missing required fields: {', '.join(self.missing)}",
            entity_kind=entity_kind,
            entity_id=entity_id,
        )


class UnsupportedEntityKindError(FieldComputationError):
    error_code = "UNSUPPORTED_ENTITY_KIND"

    def __init__(self, entity_kind: str, entity_id: Any = None):
        super().__init__(f"Unsupported entity type: {entity_kind}", entity_kind=entity_kind, entity_id=entity_id)


class EntityNotFoundError(FieldComputationError):
    error_code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_kind: str, entity_id: Any):
        super().__init__(f"{entity_kind} not found: {entity_id}", entity_kind=entity_kind, entity_id=entity_id)


class EntityComputationError(FieldComputationError):
    """Single-entity recompute failed; the entity's transaction was rolled back."""

    error_code = "ENTITY_COMPUTATION_FAILED"

    def __init__(self, entity_kind: str, entity_id: Any, reason: str):
        super().__init__(
            f"Failed to compute fields for {entity_kind} {entity_id}: {reason}",
            entity_kind=entity_kind,
            entity_id=entity_id,
        )


class ComputePipelineError(FieldComputationError):
    """Full recompute could not complete; nothing was committed."""

    error_code = "COMPUTE_PIPELINE_FAILED"

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        super().__init__(f"Failed to compute derived fields at stage {stage}: {reason}", entity_kind="pipeline")
