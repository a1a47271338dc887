"""
Automatic battle driver.

Auto-battle issues the same execute_move / execute_attack calls a player
would, one per tick. The controller follows the arena's auto-battle flag
through the event bus: it starts ticking when auto-battle is switched on and
cancels its pending tick when auto-battle is switched off, when the battle
finishes and when it is disposed.
"""

from typing import Optional, TYPE_CHECKING

from ...core.engine import TickScheduler, TimerHandle
from ...core.events import AutoBattleToggled, BattleEnded, BattleStarted, EventType

if TYPE_CHECKING:
    from ...core.events import GameEvent
    from .arena_manager import ArenaManager

# Delay between automatic turns
AUTO_BATTLE_DELAY_MS = 1500


class AutoBattleController:
    """Drives an ArenaManager on a TickScheduler while auto-battle is on."""

    def __init__(
        self,
        arena: "ArenaManager",
        scheduler: TickScheduler,
        delay_ms: int = AUTO_BATTLE_DELAY_MS,
    ):
        """Attach to an arena.

        Args:
            arena: The arena to drive
            scheduler: Scheduler for the turn ticks
            delay_ms: Delay between automatic turns
        """
        self.arena = arena
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self.ticks_fired = 0
        self._pending: Optional[TimerHandle] = None
        self._disposed = False

        event_manager = arena.event_manager
        event_manager.subscribe(
            EventType.AUTO_BATTLE_TOGGLED,
            self._handle_auto_battle_toggled,
            subscriber_name="AutoBattleController.auto_battle_toggled"
        )
        event_manager.subscribe(
            EventType.BATTLE_ENDED,
            self._handle_battle_ended,
            subscriber_name="AutoBattleController.battle_ended"
        )
        event_manager.subscribe(
            EventType.BATTLE_STARTED,
            self._handle_battle_started,
            subscriber_name="AutoBattleController.battle_started"
        )

    @property
    def is_running(self) -> bool:
        """True while a tick is pending."""
        return self._pending is not None and self._pending.active

    def start(self) -> None:
        """Schedule the next tick if auto-battle is on and the battle is running."""
        if self._disposed or self.is_running:
            return
        if not self.arena.is_auto_battle or self.arena.is_finished:
            return
        self._pending = self.scheduler.schedule(self.delay_ms, self._tick)

    def stop(self) -> None:
        """Cancel the pending tick, if any."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def dispose(self) -> None:
        """Stop for good and detach from the arena's event bus."""
        self._disposed = True
        self.stop()
        event_manager = self.arena.event_manager
        event_manager.unsubscribe(EventType.AUTO_BATTLE_TOGGLED, self._handle_auto_battle_toggled)
        event_manager.unsubscribe(EventType.BATTLE_ENDED, self._handle_battle_ended)
        event_manager.unsubscribe(EventType.BATTLE_STARTED, self._handle_battle_started)

    def _tick(self) -> None:
        self._pending = None
        if self._disposed or not self.arena.is_auto_battle or self.arena.is_finished:
            return

        self.ticks_fired += 1
        if self.arena.can_move:
            self.arena.execute_move()
        elif self.arena.can_attack:
            self.arena.execute_attack()

        self.start()

    def _handle_auto_battle_toggled(self, event: "GameEvent") -> None:
        assert isinstance(event, AutoBattleToggled), f"Expected AutoBattleToggled, got {type(event)}"
        if event.enabled:
            self.start()
        else:
            self.stop()

    def _handle_battle_ended(self, event: "GameEvent") -> None:
        assert isinstance(event, BattleEnded), f"Expected BattleEnded, got {type(event)}"
        self.stop()

    def _handle_battle_started(self, event: "GameEvent") -> None:
        assert isinstance(event, BattleStarted), f"Expected BattleStarted, got {type(event)}"
        # A new battle always starts with auto-battle off
        self.stop()
