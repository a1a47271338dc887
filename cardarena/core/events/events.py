"""Event-driven system events.

This module defines all arena events that managers can subscribe to.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events include the arena turn counter they were produced on
- Events use proper enums instead of magic strings
- Keep event types focused and avoid over-granular events
"""

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from ..data import ArenaPhase, BattleResult, BattleRole, LogCategory

if TYPE_CHECKING:
    from ...game.combat.damage_calculator import AttackResult
    from ...game.combat.skill_system import ActivatedSkill
    from ...game.entities.combatant import Combatant
    from ...game.managers.log_manager import LogLevel


class EventType(Enum):
    """Types of arena events that managers can subscribe to."""
    # Battle lifecycle
    BATTLE_STARTED = auto()
    BATTLE_ENDED = auto()
    ARENA_PHASE_CHANGED = auto()
    TURN_ENDED = auto()
    AUTO_BATTLE_TOGGLED = auto()

    # Combatant events
    COMBATANT_MOVED = auto()
    ATTACK_RESOLVED = auto()
    SKILL_ACTIVATED = auto()

    # Replay events
    REPLAY_TURN_CHANGED = auto()
    REPLAY_COMPLETED = auto()

    # Logging events
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all arena events."""
    turn: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class BattleStarted(GameEvent):
    """Event emitted when an arena is initialized with two combatants."""
    challenger: "Combatant"
    opponent: "Combatant"
    left_position: int
    right_position: int

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.BATTLE_STARTED)


@dataclass(frozen=True)
class BattleEnded(GameEvent):
    """Event emitted when a knockout finishes the battle."""
    result: BattleResult
    winner: "Combatant"
    loser: "Combatant"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.BATTLE_ENDED)


@dataclass(frozen=True)
class ArenaPhaseChanged(GameEvent):
    """Event emitted when the arena phase changes."""
    old_phase: ArenaPhase
    new_phase: ArenaPhase

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ARENA_PHASE_CHANGED)


@dataclass(frozen=True)
class TurnEnded(GameEvent):
    """Event emitted after a turn resolves and cooldowns have ticked."""
    role: BattleRole
    attacked: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_ENDED)


@dataclass(frozen=True)
class AutoBattleToggled(GameEvent):
    """Event emitted when auto-battle is switched on or off."""
    enabled: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.AUTO_BATTLE_TOGGLED)


@dataclass(frozen=True)
class CombatantMoved(GameEvent):
    """Event emitted when a combatant changes cell."""
    role: BattleRole
    combatant: "Combatant"
    from_position: int
    to_position: int
    reason: str = "move"  # "move", "knockback", "retreat", "leap_strike"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_MOVED)


@dataclass(frozen=True)
class AttackResolved(GameEvent):
    """Event emitted for every resolved hit, including follow-up hits."""
    role: BattleRole
    attack_result: "AttackResult"
    follow_up: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_RESOLVED)


@dataclass(frozen=True)
class SkillActivated(GameEvent):
    """Event emitted when a gem skill activates."""
    role: BattleRole
    skill: "ActivatedSkill"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SKILL_ACTIVATED)


@dataclass(frozen=True)
class ReplayTurnChanged(GameEvent):
    """Event emitted when replay playback lands on a new turn."""
    previous_turn: int
    current_turn: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.REPLAY_TURN_CHANGED)


@dataclass(frozen=True)
class ReplayCompleted(GameEvent):
    """Event emitted when replay playback reaches the final turn."""
    total_turns: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.REPLAY_COMPLETED)


# Logging Events
@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event emitted when a log message is created."""
    message: str
    category: LogCategory
    level: "LogLevel"
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(GameEvent):
    """Event emitted for debug-specific messages."""
    message: str
    source: str
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)
