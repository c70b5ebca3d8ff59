"""Centralized game rules shared by the derived-field computers.

These are the built-in defaults; backend.app.content.game_constants_loader can
merge a YAML override file over them (STORYFORGE_GAME_CONSTANTS).
"""
from __future__ import annotations

# Memory economy: value rating (1-5) -> currency units
MEMORY_BASE_VALUES: dict[int, int] = {
    1: 100,
    2: 500,
    3: 1000,
    4: 5000,
    5: 10000,
}

# Memory type -> per-token multiplier
MEMORY_TYPE_MULTIPLIERS: dict[str, float] = {
    "Personal": 2.0,
    "Business": 5.0,
    "Technical": 10.0,
}

# Only applied when every token of a group is collected (not computed here)
GROUP_COMPLETION_MULTIPLIER = 10.0

MEMORY_ELEMENT_TYPES: list[str] = [
    "Memory Token Video",
    "Memory Token Audio",
    "Memory Token Physical",
    "Corrupted Memory RFID",
    "Memory Fragment",
]

# SF_RFID values that mean "not assigned yet"
RFID_PLACEHOLDERS: list[str] = ["tbd", "tba", "n/a", "na", "none", "null", "xxx", "rfid", "placeholder", "?"]

# Resolution paths
RESOLUTION_PATH_TYPES: list[str] = ["Black Market", "Detective", "Third Path"]
RESOLUTION_PATH_DEFAULT = "Unassigned"

# Keyword families per path, matched case-insensitively as substrings.
# "types" checks element.type, "names" checks element.name.
CHARACTER_PATH_KEYWORDS: dict[str, dict[str, list[str]]] = {
    "Black Market": {"types": [], "names": ["black market"]},
    "Detective": {"types": ["evidence"], "names": ["clue", "investigation"]},
}
ELEMENT_PATH_KEYWORDS: dict[str, dict[str, list[str]]] = {
    "Black Market": {"types": [], "names": ["black market", "trade"]},
    "Detective": {"types": ["evidence"], "names": ["clue", "investigation", "evidence"]},
    "Third Path": {"types": [], "names": ["community", "rejection", "authority"]},
}

# Puzzle narrative thread -> resolution path
PUZZLE_THREAD_PATHS: dict[str, list[str]] = {
    "Black Market": ["Underground Parties", "Memory Drug"],
    "Detective": ["Corp. Espionage", "Corporate Espionage"],
    "Third Path": ["Marriage Troubles", "Community"],
}

# Minimum link count to consider a relationship "strong"
STRONG_LINK_THRESHOLD = 3
# Path granted to characters above the threshold
STRONG_LINK_PATH = "Third Path"
# Path granted for owning or being a memory element type
MEMORY_TYPE_PATH = "Black Market"

# Acts
ACT_TYPES: list[str] = ["Act 1", "Act 2"]
ACT_DEFAULT = "Unassigned"
# Tie-break order for act focus: lower value wins
ACT_SEQUENCE: dict[str, int] = {
    "Act 1": 1,
    "Act 2": 2,
    "Unassigned": 999,
}

# Narrative threads
NARRATIVE_THREAD_CATEGORIES: list[str] = [
    "Corporate Espionage",
    "Memory Technology",
    "Personal Relationships",
    "Environmental Crimes",
    "AI Consciousness",
]
NARRATIVE_THREAD_DEFAULT = "Unassigned"

# keyword -> themes added, in order
NARRATIVE_THREAD_KEYWORDS: dict[str, list[str]] = {
    "underground": ["Underground Parties", "Black Market"],
    "party": ["Underground Parties", "Community"],
    "memory": ["Memory Drug", "Black Market"],
    "drug": ["Memory Drug", "Black Market"],
    "corporate": ["Corporate Espionage", "Detective"],
    "espionage": ["Corporate Espionage", "Detective"],
    "investigation": ["Detective", "Corporate Espionage"],
    "evidence": ["Detective", "Corporate Espionage"],
    "community": ["Community", "Third Path"],
    "gathering": ["Community", "Third Path"],
}

# Memory value reporting
TOP_CHARACTERS_LIMIT = 5
