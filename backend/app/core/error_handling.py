"""Error handling utilities: structured logging and error responses."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_error_with_context(
    error: Exception,
    stage: str,
    entity_kind: str | None = None,
    entity_id: str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """
    Log an error with full context: stage, entity kind/id, and stack trace.

    Args:
        error: The exception that occurred
        stage: Compute stage or computer name (e.g., 'act_focus', 'puzzle_paths')
        entity_kind: Entity kind for context ('character', 'puzzle', ...)
        entity_id: Entity ID for context
        extra_context: Additional context dict to include in log
    """
    context_parts = []
    if entity_kind:
        context_parts.append(f"entity_kind={entity_kind}")
    if entity_id is not None:
        context_parts.append(f"entity_id={entity_id}")
    context_str = ", ".join(context_parts) if context_parts else "no context"

    extra: dict[str, Any] = {}
    if extra_context:
        extra.update(extra_context)
    if entity_kind:
        extra["entity_kind"] = entity_kind
    if entity_id is not None:
        extra["entity_id"] = entity_id
    extra["stage"] = stage

    logger.error(
        f"[{stage}] Error: {type(error).__name__}: {str(error)} ({context_str})",
        exc_info=error,
        extra=extra,
    )


def create_error_response(
    error_code: str,
    message: str,
    stage: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a structured error response for callers that expose the pipeline.

    Args:
        error_code: Error code (e.g., 'COMPUTE_PIPELINE_FAILED', 'ENTITY_NOT_FOUND')
        message: Human-readable error message
        stage: Compute stage where the error occurred
        details: Additional error details

    Returns:
        Structured error dict
    """
    response: dict[str, Any] = {
        "error_code": error_code,
        "message": message,
    }
    if stage:
        response["stage"] = stage
    if details:
        response["details"] = details
    return response
