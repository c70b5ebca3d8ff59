"""Core helpers shared across the compute pipeline: structured error logging and responses."""
from .error_handling import create_error_response, log_error_with_context

__all__ = [
    "create_error_response",
    "log_error_with_context",
]
