"""Tick scheduling for auto-battle and replay playback.

Controllers never own ambient timers. They ask a ``TickScheduler`` for a single
delayed callback and keep the returned ``TimerHandle`` so the tick can be
cancelled on pause, on reaching a terminal state, or on teardown.

Core Concepts:
- Time is measured in integer milliseconds
- ``ManualScheduler`` keeps a min-heap of pending ticks and only fires them
  when ``advance`` moves its clock past their due time (deterministic, used
  by tests and the command-line simulator)
- ``ThreadingTimerScheduler`` wraps ``threading.Timer`` for real-time use
- A cancelled handle never fires
"""

from __future__ import annotations

import heapq
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

TickCallback = Callable[[], None]


class TimerHandle:
    """Cancellable handle for one scheduled tick."""

    def __init__(self, due_time: int, sequence_id: int, cancel_hook: Optional[Callable[[], None]] = None):
        self.due_time = due_time
        self.sequence_id = sequence_id
        self._cancelled = False
        self._fired = False
        self._cancel_hook = cancel_hook
        # Cancel and fire may race on the timer thread; each is check-and-set
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def active(self) -> bool:
        """True while the tick is still pending."""
        return not self._cancelled and not self._fired

    def cancel(self) -> bool:
        """Cancel the tick.

        Returns:
            True if the tick was pending and is now cancelled
        """
        with self._lock:
            if not self.active:
                return False
            self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()
        return True

    def _mark_fired(self) -> bool:
        # Returns False when the tick was cancelled before it could fire
        with self._lock:
            if not self.active:
                return False
            self._fired = True
            return True


class TickScheduler(Protocol):
    """Anything that can run a callback once after a delay."""

    def schedule(self, delay_ms: int, callback: TickCallback) -> TimerHandle:
        ...


@dataclass
class ScheduledTick:
    """A pending tick in the manual scheduler queue."""
    due_time: int
    sequence_id: int
    handle: TimerHandle = field(compare=False)
    callback: TickCallback = field(compare=False)

    def __lt__(self, other: "ScheduledTick") -> bool:
        """Earlier due time first, then scheduling order."""
        if self.due_time != other.due_time:
            return self.due_time < other.due_time
        return self.sequence_id < other.sequence_id


class ManualScheduler:
    """Deterministic scheduler driven by an explicit clock.

    Ticks only fire from ``advance`` or ``run_until_idle``. A callback may
    schedule further ticks; those fire in the same ``advance`` call when they
    fall due within the advanced window.
    """

    def __init__(self):
        self._queue: list[ScheduledTick] = []
        self._current_time: int = 0
        self._sequence_counter: int = 0
        self._fired_count: int = 0

    @property
    def current_time(self) -> int:
        """Current scheduler time in milliseconds."""
        return self._current_time

    @property
    def pending_count(self) -> int:
        """Number of ticks that are still waiting to fire."""
        return sum(1 for tick in self._queue if tick.handle.active)

    def schedule(self, delay_ms: int, callback: TickCallback) -> TimerHandle:
        """Schedule a callback ``delay_ms`` after the current time.

        Negative delays are treated as zero.
        """
        self._sequence_counter += 1
        due_time = self._current_time + max(0, int(delay_ms))
        handle = TimerHandle(due_time, self._sequence_counter)
        heapq.heappush(self._queue, ScheduledTick(due_time, self._sequence_counter, handle, callback))
        return handle

    def peek_next_due(self) -> Optional[int]:
        """Due time of the next live tick, or None when idle."""
        self._drop_dead_ticks()
        if not self._queue:
            return None
        return self._queue[0].due_time

    def advance(self, ms: int) -> int:
        """Move the clock forward and fire every tick that falls due.

        Args:
            ms: Milliseconds to advance (must be >= 0)

        Returns:
            Number of callbacks fired
        """
        if ms < 0:
            raise ValueError(f"Cannot advance scheduler by negative time: {ms}")

        target_time = self._current_time + ms
        fired = 0
        while True:
            self._drop_dead_ticks()
            if not self._queue or self._queue[0].due_time > target_time:
                break
            tick = heapq.heappop(self._queue)
            self._current_time = tick.due_time
            if tick.handle._mark_fired():
                tick.callback()
                fired += 1

        self._current_time = target_time
        self._fired_count += fired
        return fired

    def run_until_idle(self, max_ticks: int = 10_000) -> int:
        """Fire pending ticks in order until none remain.

        Args:
            max_ticks: Safety limit on the number of callbacks fired

        Returns:
            Number of callbacks fired
        """
        fired = 0
        while fired < max_ticks:
            next_due = self.peek_next_due()
            if next_due is None:
                break
            fired += self.advance(next_due - self._current_time)
        return fired

    def clear(self) -> None:
        """Cancel every pending tick and reset the clock."""
        for tick in self._queue:
            tick.handle.cancel()
        self._queue.clear()
        self._current_time = 0
        self._sequence_counter = 0

    def _drop_dead_ticks(self) -> None:
        while self._queue and not self._queue[0].handle.active:
            heapq.heappop(self._queue)

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics for debugging."""
        return {
            "current_time": self._current_time,
            "total_entries": len(self._queue),
            "active_entries": self.pending_count,
            "fired": self._fired_count,
            "sequence_counter": self._sequence_counter,
        }


class ThreadingTimerScheduler:
    """Real-time scheduler backed by ``threading.Timer``.

    Callbacks run on the timer thread. Controllers built on this scheduler
    still keep at most one pending tick, so battle logic never runs on two
    threads at once.
    """

    def __init__(self):
        self._sequence_counter = 0
        self._timers: dict[int, threading.Timer] = {}
        self._lock = threading.RLock()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def schedule(self, delay_ms: int, callback: TickCallback) -> TimerHandle:
        with self._lock:
            self._sequence_counter += 1
            sequence_id = self._sequence_counter

        def cancel_timer() -> None:
            with self._lock:
                timer = self._timers.pop(sequence_id, None)
            if timer is not None:
                timer.cancel()

        handle = TimerHandle(max(0, int(delay_ms)), sequence_id, cancel_hook=cancel_timer)

        def fire() -> None:
            with self._lock:
                self._timers.pop(sequence_id, None)
            if handle._mark_fired():
                callback()

        timer = threading.Timer(max(0, delay_ms) / 1000.0, fire)
        timer.daemon = True
        with self._lock:
            self._timers[sequence_id] = timer
        timer.start()
        return handle

    def shutdown(self) -> None:
        """Cancel all outstanding timers."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
