"""Core engine components.

This package contains the fundamental engine systems:
- scheduler.py: cancellable tick scheduling for auto-battle and replay
"""

from .scheduler import (
    ManualScheduler,
    ScheduledTick,
    ThreadingTimerScheduler,
    TickCallback,
    TickScheduler,
    TimerHandle,
)

__all__ = [
    "ManualScheduler",
    "ScheduledTick",
    "ThreadingTimerScheduler",
    "TickCallback",
    "TickScheduler",
    "TimerHandle",
]
