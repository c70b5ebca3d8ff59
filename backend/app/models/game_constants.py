"""Pydantic model for the static game rules consumed by the compute pipeline."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app import constants as C


class PathKeywords(BaseModel):
    """Substring keyword families for one resolution path."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    types: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)

    @field_validator("types", "names")
    @classmethod
    def _lowercase(cls, v: List[str]) -> List[str]:
        return [k.strip().lower() for k in v if k and k.strip()]


class GameConstants(BaseModel):
    """Rating/multiplier tables, enums, sentinels and thresholds."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    memory_base_values: Dict[int, int] = Field(default_factory=lambda: dict(C.MEMORY_BASE_VALUES))
    memory_type_multipliers: Dict[str, float] = Field(default_factory=lambda: dict(C.MEMORY_TYPE_MULTIPLIERS))
    group_completion_multiplier: float = C.GROUP_COMPLETION_MULTIPLIER
    memory_element_types: List[str] = Field(default_factory=lambda: list(C.MEMORY_ELEMENT_TYPES))
    rfid_placeholders: List[str] = Field(default_factory=lambda: list(C.RFID_PLACEHOLDERS))

    resolution_path_types: List[str] = Field(default_factory=lambda: list(C.RESOLUTION_PATH_TYPES))
    resolution_path_default: str = C.RESOLUTION_PATH_DEFAULT
    character_path_keywords: Dict[str, PathKeywords] = Field(
        default_factory=lambda: {k: PathKeywords(**v) for k, v in C.CHARACTER_PATH_KEYWORDS.items()}
    )
    element_path_keywords: Dict[str, PathKeywords] = Field(
        default_factory=lambda: {k: PathKeywords(**v) for k, v in C.ELEMENT_PATH_KEYWORDS.items()}
    )
    puzzle_thread_paths: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in C.PUZZLE_THREAD_PATHS.items()}
    )
    strong_link_threshold: int = C.STRONG_LINK_THRESHOLD
    strong_link_path: str = C.STRONG_LINK_PATH
    memory_type_path: str = C.MEMORY_TYPE_PATH

    act_types: List[str] = Field(default_factory=lambda: list(C.ACT_TYPES))
    act_default: str = C.ACT_DEFAULT
    act_sequence: Dict[str, int] = Field(default_factory=lambda: dict(C.ACT_SEQUENCE))

    narrative_thread_categories: List[str] = Field(default_factory=lambda: list(C.NARRATIVE_THREAD_CATEGORIES))
    narrative_thread_default: str = C.NARRATIVE_THREAD_DEFAULT
    narrative_thread_keywords: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in C.NARRATIVE_THREAD_KEYWORDS.items()}
    )

    top_characters_limit: int = C.TOP_CHARACTERS_LIMIT

    @field_validator("memory_base_values")
    @classmethod
    def _positive_base_values(cls, v: Dict[int, int]) -> Dict[int, int]:
        for rating, value in v.items():
            if rating < 1:
                raise ValueError(f"value rating keys must be >= 1, got {rating}")
            if value < 0:
                raise ValueError(f"base value for rating {rating} must be >= 0")
        return v

    @field_validator("memory_type_multipliers")
    @classmethod
    def _positive_multipliers(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, mult in v.items():
            if mult <= 0:
                raise ValueError(f"multiplier for {name!r} must be positive")
        return v

    @field_validator("narrative_thread_keywords")
    @classmethod
    def _lowercase_thread_keywords(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {k.strip().lower(): list(themes) for k, themes in v.items() if k and k.strip()}

    @field_validator("rfid_placeholders")
    @classmethod
    def _lowercase_placeholders(cls, v: List[str]) -> List[str]:
        return [p.strip().lower() for p in v if p and p.strip()]

    @model_validator(mode="after")
    def _check_sentinels(self) -> "GameConstants":
        if not self.resolution_path_types:
            raise ValueError("resolution_path_types must not be empty")
        if self.resolution_path_default in self.resolution_path_types:
            raise ValueError("resolution_path_default must not be one of resolution_path_types")
        if self.narrative_thread_default in self.narrative_thread_categories:
            raise ValueError("narrative_thread_default must not be one of narrative_thread_categories")
        return self

    @property
    def valid_resolution_paths(self) -> set[str]:
        return {*self.resolution_path_types, self.resolution_path_default}

    @property
    def valid_acts(self) -> set[str]:
        return {*self.act_types, self.act_default}
