"""Core data structures and definitions.

This package contains fundamental data types and arena definitions:
- data_structures.py: cell index helpers and the ArenaPositions pair
- game_enums.py: centralized enums for phases, roles, skills and log entries
"""

from .data_structures import (
    ArenaPositions,
    CellIndex,
    are_adjacent,
    clamp_position,
    determine_phase,
    direction_sign,
    get_distance,
    get_next_position,
    is_boundary_cell,
    is_in_range,
    is_valid_cell_index,
)
from .game_enums import (
    ADJACENT_DISTANCE,
    CELL_COUNT,
    DEFAULT_ATTACK_RANGE,
    LEFT_BOUNDARY_INDEX,
    MAX_GEM_SLOTS,
    RIGHT_BOUNDARY_INDEX,
    SKILL_TRIGGERS,
    SKILL_TYPE_NAMES,
    ArenaPhase,
    BattleResult,
    BattleRole,
    CardSide,
    HpBarColor,
    LogCategory,
    LogEntryType,
    SkillTrigger,
    SkillType,
)

__all__ = [
    "ArenaPositions",
    "CellIndex",
    "are_adjacent",
    "clamp_position",
    "determine_phase",
    "direction_sign",
    "get_distance",
    "get_next_position",
    "is_boundary_cell",
    "is_in_range",
    "is_valid_cell_index",
    "ADJACENT_DISTANCE",
    "CELL_COUNT",
    "DEFAULT_ATTACK_RANGE",
    "LEFT_BOUNDARY_INDEX",
    "MAX_GEM_SLOTS",
    "RIGHT_BOUNDARY_INDEX",
    "SKILL_TRIGGERS",
    "SKILL_TYPE_NAMES",
    "ArenaPhase",
    "BattleResult",
    "BattleRole",
    "CardSide",
    "HpBarColor",
    "LogCategory",
    "LogEntryType",
    "SkillTrigger",
    "SkillType",
]
