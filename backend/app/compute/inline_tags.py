"""Inline SF_ tag parser for element descriptions. Pure functions, no store access.

Grammar (labels case-insensitive, values optionally wrapped in [...]):
    SF_RFID: <token>
    SF_ValueRating: <1-5>
    SF_MemoryType: <Personal|Business|Technical>
    SF_Group: <Group Name> (<N>x)      also "(xN)"; SF_MemoryGroup is an alias

Individual token value = base value for the rating * memory type multiplier.
The group multiplier is parsed and returned but never folded into that value;
it is reserved for group completion bonuses.
"""
from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

_RFID_RE = re.compile(r"SF_RFID:\s*\[?\s*([^\s\[\]]+)", re.IGNORECASE)
_RATING_RE = re.compile(r"SF_ValueRating:\s*\[?\s*(\d+)", re.IGNORECASE)
_TYPE_RE = re.compile(r"SF_MemoryType:\s*\[?\s*([A-Za-z]+)", re.IGNORECASE)
_GROUP_RE = re.compile(
    r"SF_(?:Memory)?Group:\s*\[?\s*([^(\[\]\n]+?)\s*\]?\s*\(\s*(x?)\s*([^()\s]*?)\s*(x?)\s*\)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class MemoryTagData:
    rfid_tag: str | None = None
    value_rating: int = 0
    memory_type: str | None = None
    memory_group: str | None = None
    group_multiplier: float = 1.0
    calculated_memory_value: int = 0

    def to_fields(self) -> dict[str, Any]:
        return asdict(self)


EMPTY_TAG_DATA = MemoryTagData()


def extract_rfid_tag(text: str | None, placeholders: Iterable[str] = ()) -> str | None:
    """First token after SF_RFID; placeholder tokens read as None."""
    if not text:
        return None
    m = _RFID_RE.search(text)
    if not m:
        return None
    token = m.group(1).strip().rstrip(",;-")
    if not token:
        return None
    if token.lower() in {p.lower() for p in placeholders}:
        return None
    return token


def extract_value_rating(text: str | None, base_values: Mapping[int, int]) -> int:
    """Rating that exists in the base value table, else 0."""
    if not text:
        return 0
    m = _RATING_RE.search(text)
    if not m:
        return 0
    rating = int(m.group(1))
    return rating if rating in base_values else 0


def extract_memory_type(text: str | None, type_multipliers: Mapping[str, float]) -> str | None:
    """Memory type in its canonical spelling, or None when unrecognized."""
    if not text:
        return None
    m = _TYPE_RE.search(text)
    if not m:
        return None
    raw = m.group(1).lower()
    for name in type_multipliers:
        if name.lower() == raw:
            return name
    return None


def extract_memory_group(text: str | None) -> tuple[str | None, float]:
    """(group name, multiplier); (None, 1.0) when there is no group tag."""
    if not text:
        return None, 1.0
    m = _GROUP_RE.search(text)
    if not m:
        return None, 1.0
    group = m.group(1).strip()
    if not group:
        return None, 1.0
    try:
        multiplier = float(m.group(3))
    except ValueError:
        multiplier = 1.0
    if not math.isfinite(multiplier):
        multiplier = 1.0
    return group, multiplier


def calculate_token_value(
    value_rating: int,
    memory_type: str | None,
    base_values: Mapping[int, int],
    type_multipliers: Mapping[str, float],
    group_multiplier: float = 1.0,
) -> int:
    """Individual token value; group_multiplier is intentionally not applied."""
    if not value_rating:
        return 0
    base = base_values.get(value_rating, 0)
    type_multiplier = type_multipliers.get(memory_type, 1.0) if memory_type else 1.0
    # Halves round up
    return int(math.floor(base * type_multiplier + 0.5))


def parse_memory_tags(text: Any, constants: Any) -> MemoryTagData:
    """Extract every memory field from a description.

    `constants` needs memory_base_values, memory_type_multipliers and
    rfid_placeholders (a GameConstants instance in practice).
    """
    if not text or not isinstance(text, str):
        return EMPTY_TAG_DATA

    base_values = constants.memory_base_values
    multipliers = constants.memory_type_multipliers
    rfid = extract_rfid_tag(text, constants.rfid_placeholders)
    rating = extract_value_rating(text, base_values)
    memory_type = extract_memory_type(text, multipliers)
    group, group_multiplier = extract_memory_group(text)
    return MemoryTagData(
        rfid_tag=rfid,
        value_rating=rating,
        memory_type=memory_type,
        memory_group=group,
        group_multiplier=group_multiplier,
        calculated_memory_value=calculate_token_value(rating, memory_type, base_values, multipliers, group_multiplier),
    )
