"""Event system for publisher-subscriber communication.

This package contains the complete event-driven architecture:
- event_manager.py: Publisher-subscriber event routing and coordination
- events.py: Event definitions for inter-system communication
"""

from .event_manager import EventManager, EventPriority, QueuedEvent
from .events import (
    GameEvent,
    EventType,
    BattleStarted,
    BattleEnded,
    ArenaPhaseChanged,
    TurnEnded,
    AutoBattleToggled,
    CombatantMoved,
    AttackResolved,
    SkillActivated,
    ReplayTurnChanged,
    ReplayCompleted,
    LogMessage,
    DebugMessage,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "GameEvent",
    "EventType",
    "BattleStarted",
    "BattleEnded",
    "ArenaPhaseChanged",
    "TurnEnded",
    "AutoBattleToggled",
    "CombatantMoved",
    "AttackResolved",
    "SkillActivated",
    "ReplayTurnChanged",
    "ReplayCompleted",
    "LogMessage",
    "DebugMessage",
]
