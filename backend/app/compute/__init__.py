"""Derived-field computers and the orchestrator that sequences them."""
from .act_focus import ActFocusComputer
from .base import DerivedFieldComputer, FieldComputerSupport, StageStats
from .errors import (
    ComputePipelineError,
    EntityComputationError,
    EntityNotFoundError,
    FieldComputationError,
    MissingFieldError,
    UnsupportedEntityKindError,
)
from .memory_value_computer import MemoryValueComputer
from .memory_value_extractor import MemoryValueExtractor
from .narrative_threads import NarrativeThreadComputer
from .orchestrator import ComputeOrchestrator, RunReport
from .resolution_paths import ResolutionPathComputer

__all__ = [
    "ActFocusComputer",
    "ResolutionPathComputer",
    "NarrativeThreadComputer",
    "MemoryValueExtractor",
    "MemoryValueComputer",
    "ComputeOrchestrator",
    "RunReport",
    "StageStats",
    "DerivedFieldComputer",
    "FieldComputerSupport",
    "FieldComputationError",
    "MissingFieldError",
    "UnsupportedEntityKindError",
    "EntityNotFoundError",
    "EntityComputationError",
    "ComputePipelineError",
]
