"""Arena managers.

This package contains the stateful parts of a battle:
- arena_manager.py: the arena state machine (positions, turns, phases, victory)
- auto_battle.py: scheduler-driven automatic turns
- log_manager.py: event-driven log collection and filtering
"""

from .log_manager import LogLevel, LogManager, LogRecord
from .arena_manager import ArenaManager, ArenaTurnOutcome, BattleLogEntry, DANGER_THRESHOLD
from .auto_battle import AUTO_BATTLE_DELAY_MS, AutoBattleController

__all__ = [
    "LogLevel",
    "LogManager",
    "LogRecord",
    "ArenaManager",
    "ArenaTurnOutcome",
    "BattleLogEntry",
    "DANGER_THRESHOLD",
    "AUTO_BATTLE_DELAY_MS",
    "AutoBattleController",
]
