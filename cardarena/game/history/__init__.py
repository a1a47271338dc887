"""Battle history.

This package records battles and plays them back:
- records.py: immutable BattleRecord types and their JSON wire format
- battle_recorder.py: captures a battle turn by turn into a BattleRecord
- replay_controller.py: timed, pausable playback of a finished record
- history_store.py: storage interface and an in-memory implementation
"""

from .battle_recorder import BattleRecorder, RecorderStateError, current_time_ms
from .history_store import BattleHistoryStore, InMemoryBattleHistoryStore, PaginatedBattles
from .records import (
    BattleRecord,
    CombatantSnapshot,
    DamageBreakdown,
    DefenderHpState,
    HpTimelineEntry,
    LifestealDetail,
    TurnRecord,
)
from .replay_controller import BASE_TURN_DELAY_MS, REPLAY_SPEEDS, ReplayController

__all__ = [
    "BattleRecorder",
    "RecorderStateError",
    "current_time_ms",
    "BattleHistoryStore",
    "InMemoryBattleHistoryStore",
    "PaginatedBattles",
    "BattleRecord",
    "CombatantSnapshot",
    "DamageBreakdown",
    "DefenderHpState",
    "HpTimelineEntry",
    "LifestealDetail",
    "TurnRecord",
    "BASE_TURN_DELAY_MS",
    "REPLAY_SPEEDS",
    "ReplayController",
]
