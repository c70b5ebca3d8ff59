"""Application models (narrative entities, game constants)."""
from .entities import (
    Character,
    Element,
    Puzzle,
    TimelineEvent,
    decode_id_list,
    decode_label_list,
    encode_list,
)
from .game_constants import GameConstants, PathKeywords

__all__ = [
    "Character",
    "Element",
    "Puzzle",
    "TimelineEvent",
    "decode_id_list",
    "decode_label_list",
    "encode_list",
    "GameConstants",
    "PathKeywords",
]
