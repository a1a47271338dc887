"""
Unit tests for the auto-battle controller.

The controller is driven by a ManualScheduler so every tick is deterministic.
"""

from unittest.mock import Mock

import pytest

from cardarena.core.data import ArenaPhase, BattleResult
from cardarena.core.engine import ManualScheduler
from cardarena.game.managers import ArenaManager, AutoBattleController


@pytest.fixture
def arena(fixed_random):
    return ArenaManager(rng=fixed_random(), clock=lambda: 0)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def controller(arena, scheduler):
    return AutoBattleController(arena, scheduler, delay_ms=1500)


@pytest.fixture
def started_arena(arena, make_combatant):
    hero = make_combatant("hero", "Hero", max_hp=100, atk=50)
    foe = make_combatant("foe", "Foe", max_hp=100, atk=10)
    arena.init_arena(hero, foe)
    return arena


class TestAutoBattleController:
    """Test ticking the arena while auto-battle is on."""

    def test_idle_until_enabled(self, controller, started_arena, scheduler):
        assert not controller.is_running
        assert scheduler.advance(10_000) == 0
        assert started_arena.turn_count == 0

    def test_one_turn_per_tick(self, controller, started_arena, scheduler):
        """Enabling auto-battle schedules a tick after the configured delay."""
        started_arena.toggle_auto_battle()
        assert controller.is_running

        scheduler.advance(1499)
        assert started_arena.turn_count == 0

        scheduler.advance(1)
        assert started_arena.turn_count == 1
        assert started_arena.left_position == 1
        assert controller.ticks_fired == 1
        assert controller.is_running

    def test_disable_cancels_pending_tick(self, controller, started_arena, scheduler):
        started_arena.toggle_auto_battle()
        scheduler.advance(1500)

        started_arena.toggle_auto_battle()

        assert not controller.is_running
        assert scheduler.pending_count == 0
        scheduler.advance(10_000)
        assert started_arena.turn_count == 1

    def test_runs_battle_to_completion(self, controller, started_arena, scheduler):
        """Six moves and three attacks, one every 1500 ms."""
        started_arena.toggle_auto_battle()

        scheduler.run_until_idle()

        assert started_arena.arena_phase == ArenaPhase.FINISHED
        assert started_arena.result == BattleResult.CHALLENGER_WINS
        assert started_arena.turn_count == 9
        assert controller.ticks_fired == 9
        assert scheduler.current_time == 13_500
        assert not started_arena.is_auto_battle
        assert not controller.is_running
        assert scheduler.pending_count == 0

    def test_cannot_enable_in_setup(self, arena, controller, scheduler):
        assert arena.toggle_auto_battle() is False
        assert not controller.is_running
        assert scheduler.pending_count == 0

    def test_new_battle_stops_ticking(self, controller, started_arena, scheduler, make_combatant):
        started_arena.toggle_auto_battle()

        started_arena.init_arena(make_combatant("a", "A"), make_combatant("b", "B"))

        assert not controller.is_running
        assert scheduler.pending_count == 0
        assert not started_arena.is_auto_battle

    def test_reset_ignores_stale_tick(self, controller, started_arena, scheduler):
        """A tick that fires after reset does nothing."""
        started_arena.toggle_auto_battle()

        started_arena.reset_arena()
        scheduler.advance(1500)

        assert started_arena.arena_phase == ArenaPhase.SETUP
        assert started_arena.turn_count == 0
        assert not controller.is_running

    def test_manual_turns_keep_schedule(self, controller, started_arena, scheduler):
        """Manual actions between ticks do not add extra ticks."""
        started_arena.toggle_auto_battle()

        started_arena.execute_move()
        scheduler.advance(1500)

        assert started_arena.turn_count == 2
        assert scheduler.pending_count == 1

    def test_dispose_detaches(self, controller, started_arena, scheduler):
        started_arena.toggle_auto_battle()

        controller.dispose()

        assert not controller.is_running
        scheduler.advance(10_000)
        assert started_arena.turn_count == 0

        started_arena.toggle_auto_battle()
        started_arena.toggle_auto_battle()
        assert scheduler.pending_count == 0

    def test_tick_racing_dispose_does_nothing(self, started_arena):
        """A tick that fires while dispose is cancelling it takes no turn."""
        scheduler = Mock()
        controller = AutoBattleController(started_arena, scheduler, delay_ms=1500)
        started_arena.toggle_auto_battle()
        tick = scheduler.schedule.call_args[0][1]
        handle = scheduler.schedule.return_value
        handle.cancel.side_effect = tick

        controller.dispose()

        handle.cancel.assert_called_once()
        assert started_arena.turn_count == 0
        assert controller.ticks_fired == 0
        assert scheduler.schedule.call_count == 1

    def test_stale_tick_after_dispose_does_nothing(self, started_arena):
        scheduler = Mock()
        controller = AutoBattleController(started_arena, scheduler, delay_ms=1500)
        started_arena.toggle_auto_battle()
        tick = scheduler.schedule.call_args[0][1]

        controller.dispose()
        tick()

        assert started_arena.turn_count == 0
        assert scheduler.schedule.call_count == 1

    def test_two_controllers_are_independent(self, fixed_random, make_combatant):
        scheduler = ManualScheduler()
        first = ArenaManager(rng=fixed_random())
        second = ArenaManager(rng=fixed_random())
        AutoBattleController(first, scheduler)
        AutoBattleController(second, scheduler)
        first.init_arena(make_combatant("a", "A"), make_combatant("b", "B"))
        second.init_arena(make_combatant("c", "C"), make_combatant("d", "D"))

        first.toggle_auto_battle()
        scheduler.advance(1500)

        assert first.turn_count == 1
        assert second.turn_count == 0
