"""
Replay playback of finished battles.

The replay controller is a pure reader of a BattleRecord: it never recomputes
damage, it only moves a turn cursor over the recorded history. Automatic
playback advances one turn per tick on a TickScheduler, with the tick delay
divided by the playback speed.
"""

from typing import Callable, Optional, TYPE_CHECKING

from ...core.engine import TickScheduler, TimerHandle
from ...core.events import ReplayCompleted, ReplayTurnChanged
from .records import BattleRecord, TurnRecord

if TYPE_CHECKING:
    from ...core.events import EventManager

# Delay between turns at 1x speed
BASE_TURN_DELAY_MS = 4500
REPLAY_SPEEDS = (1, 2, 4)


class ReplayController:
    """Timed, pausable, speed-scaled playback of a BattleRecord.

    ``current_turn`` is 0 for the pre-battle state and ``total_turns`` once
    the last recorded attack is shown. At most one tick is pending at any
    time, and it is cancelled on pause, reset, completion and dispose.
    """

    def __init__(
        self,
        record: BattleRecord,
        scheduler: TickScheduler,
        on_complete: Optional[Callable[[], None]] = None,
        event_manager: Optional["EventManager"] = None,
        base_delay_ms: int = BASE_TURN_DELAY_MS,
    ):
        """Initialize the controller at turn 0, paused, at 1x speed.

        Args:
            record: The finished battle to replay
            scheduler: Scheduler that drives automatic playback
            on_complete: Called once each time playback reaches the end
            event_manager: Optional event bus for replay events
            base_delay_ms: Delay between turns at 1x speed
        """
        self.record = record
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.event_manager = event_manager
        self.base_delay_ms = base_delay_ms

        self._current_turn = 0
        self._is_playing = False
        self._speed = 1
        self._pending: Optional[TimerHandle] = None
        self._disposed = False

    # ============== State ==============

    @property
    def current_turn(self) -> int:
        return self._current_turn

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def total_turns(self) -> int:
        return self.record.total_turns

    @property
    def is_complete(self) -> bool:
        return self._current_turn >= self.total_turns

    @property
    def turn_delay_ms(self) -> float:
        return self.base_delay_ms / self._speed

    @property
    def challenger_hp(self) -> int:
        entry = self.record.get_timeline_entry(self._current_turn)
        if entry is None:
            return self.record.challenger.max_hp
        return entry.challenger_hp

    @property
    def opponent_hp(self) -> int:
        entry = self.record.get_timeline_entry(self._current_turn)
        if entry is None:
            return self.record.opponent.max_hp
        return entry.opponent_hp

    @property
    def current_turn_record(self) -> Optional[TurnRecord]:
        """The attack shown at the current turn (None at the initial state)."""
        if 0 < self._current_turn <= len(self.record.turns):
            return self.record.turns[self._current_turn - 1]
        return None

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None and self._pending.active

    # ============== Controls ==============

    def play(self) -> None:
        """Start or resume playback, restarting from turn 0 if complete."""
        if self._disposed:
            return
        if self.is_complete:
            self._set_turn(0)
        if self.is_complete:
            # Nothing recorded to play
            return
        self._is_playing = True
        self._reschedule()

    def pause(self) -> None:
        self._is_playing = False
        self._cancel_pending()

    def reset(self) -> None:
        """Stop playback and return to the initial state."""
        self.pause()
        self._set_turn(0)

    def set_speed(self, speed: int) -> None:
        """Change the playback speed (1, 2 or 4).

        A pending tick is restarted with the new delay.

        Raises:
            ValueError: If speed is not a supported value
        """
        if speed not in REPLAY_SPEEDS:
            raise ValueError(f"Unsupported replay speed {speed}, expected one of {REPLAY_SPEEDS}")
        self._speed = speed
        if self._is_playing:
            self._reschedule()

    def go_to_turn(self, turn: int) -> None:
        """Jump to a turn, clamped to [0, total_turns].

        Landing on the last turn stops playback.
        """
        self._set_turn(max(0, min(turn, self.total_turns)))
        self._after_manual_step()

    def next_turn(self) -> None:
        if self._current_turn < self.total_turns:
            self._set_turn(self._current_turn + 1)
            self._after_manual_step()

    def prev_turn(self) -> None:
        if self._current_turn > 0:
            self._set_turn(self._current_turn - 1)
            self._after_manual_step()

    def dispose(self) -> None:
        """Stop playback for good; later ticks and play calls do nothing."""
        self.pause()
        self._disposed = True

    # ============== Internals ==============

    def _after_manual_step(self) -> None:
        if self.is_complete:
            self.pause()
        elif self._is_playing:
            self._reschedule()

    def _set_turn(self, turn: int) -> None:
        previous = self._current_turn
        self._current_turn = turn
        if previous != turn and self.event_manager is not None:
            self.event_manager.publish_immediate(
                ReplayTurnChanged(turn=turn, previous_turn=previous, current_turn=turn),
                source="ReplayController"
            )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _reschedule(self) -> None:
        self._cancel_pending()
        if self._disposed or not self._is_playing or self.is_complete:
            return
        self._pending = self.scheduler.schedule(int(self.turn_delay_ms), self._tick)

    def _tick(self) -> None:
        self._pending = None
        if self._disposed or not self._is_playing:
            return

        next_turn = self._current_turn + 1
        if next_turn >= self.total_turns:
            self._set_turn(self.total_turns)
            self._is_playing = False
            if self.event_manager is not None:
                self.event_manager.publish_immediate(
                    ReplayCompleted(turn=self.total_turns, total_turns=self.total_turns),
                    source="ReplayController"
                )
            if self.on_complete is not None:
                self.on_complete()
            return

        self._set_turn(next_turn)
        self._reschedule()
