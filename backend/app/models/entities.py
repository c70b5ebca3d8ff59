"""Pydantic models for the curated narrative entities.

List-valued columns are stored as JSON text; from_row() decodes them here so the
computers only ever see typed lists. Derived fields are overwritten in place by
the compute pipeline.
"""
from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


def decode_id_list(raw: Any) -> Optional[List[str]]:
    """Decode a JSON list column.

    Returns [] for NULL/empty text, None when the text is malformed or is not a
    JSON list. Items are stringified; null items are dropped.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(i) for i in raw if i is not None]
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return []
    try:
        value = json.loads(text)
    except (TypeError, json.JSONDecodeError):
        return None
    if not isinstance(value, list):
        return None
    return [str(i) for i in value if i is not None]


def decode_label_list(raw: Any) -> List[str]:
    """Decode a derived label list column; malformed text reads as empty."""
    decoded = decode_id_list(raw)
    return decoded if decoded is not None else []


def encode_list(values: List[str]) -> str:
    return json.dumps(list(values))


def _row_dict(row: Mapping[str, Any]) -> dict[str, Any]:
    return {k: row[k] for k in row.keys()}


class Character(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    connections: int = 0
    owned_element_ids: List[str] = Field(default_factory=list)
    resolution_paths: List[str] = Field(default_factory=list)
    total_memory_value: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], owned_element_ids: List[str] | None = None) -> "Character":
        data = _row_dict(row)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            connections=data.get("connections") or 0,
            owned_element_ids=owned_element_ids or [],
            resolution_paths=decode_label_list(data.get("resolution_paths")),
            total_memory_value=data.get("total_memory_value") or 0,
        )


class Element(BaseModel):
    """A prop. Description may embed SF_ inline tags."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    first_available: Optional[str] = None
    owner_id: Optional[str] = None
    rfid_tag: Optional[str] = None
    value_rating: int = 0
    memory_type: Optional[str] = None
    memory_group: Optional[str] = None
    group_multiplier: float = 1.0
    calculated_memory_value: int = 0
    resolution_paths: List[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Element":
        data = _row_dict(row)
        gm = data.get("group_multiplier")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            type=data.get("type"),
            description=data.get("description"),
            first_available=data.get("first_available"),
            owner_id=data.get("owner_id"),
            rfid_tag=data.get("rfid_tag"),
            value_rating=data.get("value_rating") or 0,
            memory_type=data.get("memory_type"),
            memory_group=data.get("memory_group"),
            group_multiplier=1.0 if gm is None else gm,
            calculated_memory_value=data.get("calculated_memory_value") or 0,
            resolution_paths=decode_label_list(data.get("resolution_paths")),
        )


class Puzzle(BaseModel):
    """reward_element_ids is None when the stored list could not be decoded."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None
    story_reveals: Optional[str] = None
    reward_element_ids: Optional[List[str]] = Field(default_factory=list)
    narrative_threads: List[str] = Field(default_factory=list)
    resolution_paths: List[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Puzzle":
        data = _row_dict(row)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            story_reveals=data.get("story_reveals"),
            reward_element_ids=decode_id_list(data.get("reward_ids")),
            narrative_threads=decode_label_list(data.get("narrative_threads")),
            resolution_paths=decode_label_list(data.get("resolution_paths")),
        )


class TimelineEvent(BaseModel):
    """element_ids is None when the stored list could not be decoded."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    description: Optional[str] = None
    element_ids: Optional[List[str]] = Field(default_factory=list)
    act_focus: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TimelineEvent":
        data = _row_dict(row)
        return cls(
            id=data.get("id"),
            description=data.get("description"),
            element_ids=decode_id_list(data.get("element_ids")),
            act_focus=data.get("act_focus"),
        )
