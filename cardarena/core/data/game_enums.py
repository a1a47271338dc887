"""Centralized arena enums and constants.

This module contains all core enums that are used across multiple modules,
eliminating duplication and providing a single source of truth. Enum values
are the lowercase strings used in persisted battle data and YAML content.
"""

from enum import Enum, auto


# Arena geometry
CELL_COUNT = 8
LEFT_BOUNDARY_INDEX = 0
RIGHT_BOUNDARY_INDEX = CELL_COUNT - 1
ADJACENT_DISTANCE = 1

# Combatants without a ranged weapon can only hit adjacent cells
DEFAULT_ATTACK_RANGE = 1

MAX_GEM_SLOTS = 3


class ArenaPhase(Enum):
    """Phases of an arena battle."""
    SETUP = "setup"        # Before init_arena
    MOVING = "moving"      # Nobody in range, combatants close the distance
    COMBAT = "combat"      # At least one combatant can reach the other
    FINISHED = "finished"  # Knockout happened, terminal


class BattleRole(Enum):
    """Which participant a combatant is in a battle."""
    CHALLENGER = "challenger"
    OPPONENT = "opponent"

    @property
    def opposite(self) -> "BattleRole":
        """Get the other role."""
        if self is BattleRole.CHALLENGER:
            return BattleRole.OPPONENT
        return BattleRole.CHALLENGER


class BattleResult(Enum):
    """Outcome of a finished battle."""
    CHALLENGER_WINS = "challenger_wins"
    OPPONENT_WINS = "opponent_wins"


class CardSide(Enum):
    """Side of the arena a card starts on."""
    LEFT = "left"
    RIGHT = "right"


class SkillTrigger(Enum):
    """When a gem skill is allowed to activate."""
    MOVEMENT = "movement"
    COMBAT = "combat"


class SkillType(Enum):
    """Skills a gem can provide."""
    KNOCKBACK = "knockback"          # Push enemy away after hitting
    RETREAT = "retreat"              # Step back after hitting
    DOUBLE_MOVE = "double_move"      # Move further than one cell
    DOUBLE_ATTACK = "double_attack"  # Hit again if the enemy survives
    EXECUTE = "execute"              # Finish an enemy below an HP threshold
    LEAP_STRIKE = "leap_strike"      # Jump next to the enemy and knock it back


class LogEntryType(Enum):
    """Types of entries in the arena battle log."""
    MOVE = "move"
    ATTACK = "attack"
    SKILL = "skill"
    VICTORY = "victory"


class HpBarColor(Enum):
    """HP bar colors by remaining percentage."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()     # Initialization, configuration loading
    BATTLE = auto()     # Attacks, knockouts, victory
    MOVEMENT = auto()   # Combatant movement
    SKILL = auto()      # Gem skill activations and cooldowns
    REPLAY = auto()     # Replay playback
    DEBUG = auto()      # Debug messages
    WARNING = auto()
    ERROR = auto()


SKILL_TYPE_NAMES = {
    SkillType.KNOCKBACK: "Knockback",
    SkillType.RETREAT: "Retreat",
    SkillType.DOUBLE_MOVE: "Double Move",
    SkillType.DOUBLE_ATTACK: "Double Attack",
    SkillType.EXECUTE: "Execute",
    SkillType.LEAP_STRIKE: "Leap Strike",
}

# Which trigger each skill resolves under
SKILL_TRIGGERS = {
    SkillType.KNOCKBACK: SkillTrigger.COMBAT,
    SkillType.RETREAT: SkillTrigger.COMBAT,
    SkillType.DOUBLE_ATTACK: SkillTrigger.COMBAT,
    SkillType.EXECUTE: SkillTrigger.COMBAT,
    SkillType.DOUBLE_MOVE: SkillTrigger.MOVEMENT,
    SkillType.LEAP_STRIKE: SkillTrigger.MOVEMENT,
}
