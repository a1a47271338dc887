"""
Unit tests for tick scheduling.

Tests the deterministic ManualScheduler used by auto-battle and replay, the
cancellable TimerHandle, and the threading-backed real-time scheduler.
"""

import threading
from unittest.mock import Mock

import pytest

from cardarena.core.engine import ManualScheduler, ThreadingTimerScheduler, TimerHandle


class TestTimerHandle:
    """Test TimerHandle state transitions."""

    def test_new_handle_is_active(self):
        handle = TimerHandle(due_time=100, sequence_id=1)
        assert handle.active
        assert not handle.cancelled
        assert not handle.fired

    def test_cancel_once(self):
        """Cancelling succeeds only while pending."""
        hook = Mock()
        handle = TimerHandle(due_time=100, sequence_id=1, cancel_hook=hook)

        assert handle.cancel()
        assert handle.cancelled
        assert not handle.active
        assert not handle.cancel()
        hook.assert_called_once()

    def test_fired_handle_cannot_be_cancelled(self):
        """Cancelling after firing is a no-op."""
        handle = TimerHandle(due_time=100, sequence_id=1)
        assert handle._mark_fired()

        assert not handle.cancel()
        assert handle.fired
        assert not handle.cancelled

    def test_cancelled_handle_cannot_fire(self):
        handle = TimerHandle(due_time=100, sequence_id=1)
        assert handle.cancel()

        assert not handle._mark_fired()
        assert not handle.fired

    def test_concurrent_cancel_and_fire_pick_one_winner(self):
        """Exactly one of a racing cancel and fire takes effect."""
        for sequence_id in range(200):
            handle = TimerHandle(due_time=0, sequence_id=sequence_id)
            barrier = threading.Barrier(2)
            outcomes = {}

            def cancel():
                barrier.wait()
                outcomes["cancel"] = handle.cancel()

            def fire():
                barrier.wait()
                outcomes["fire"] = handle._mark_fired()

            threads = [threading.Thread(target=cancel), threading.Thread(target=fire)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=2.0)

            assert outcomes["cancel"] != outcomes["fire"]
            assert handle.cancelled != handle.fired


class TestManualScheduler:
    """Test ManualScheduler timing."""

    def test_tick_fires_at_due_time(self, scheduler):
        """A tick fires once the clock reaches its due time, not before."""
        callback = Mock()
        handle = scheduler.schedule(1500, callback)

        assert scheduler.advance(1499) == 0
        callback.assert_not_called()

        assert scheduler.advance(1) == 1
        callback.assert_called_once()
        assert handle.fired
        assert scheduler.current_time == 1500

    def test_ticks_fire_in_due_order(self, scheduler):
        """Earlier due times fire first, ties in scheduling order."""
        fired = []
        scheduler.schedule(300, lambda: fired.append("c"))
        scheduler.schedule(100, lambda: fired.append("a"))
        scheduler.schedule(300, lambda: fired.append("d"))
        scheduler.schedule(200, lambda: fired.append("b"))

        scheduler.advance(1000)

        assert fired == ["a", "b", "c", "d"]

    def test_cancelled_tick_never_fires(self, scheduler):
        """Cancelled ticks are dropped."""
        callback = Mock()
        handle = scheduler.schedule(100, callback)
        handle.cancel()

        assert scheduler.advance(500) == 0
        callback.assert_not_called()
        assert scheduler.pending_count == 0

    def test_ticks_scheduled_during_advance_fire_in_window(self, scheduler):
        """Chained ticks that fall due inside the window fire in the same advance."""
        fired = []

        def first():
            fired.append(("first", scheduler.current_time))
            scheduler.schedule(50, lambda: fired.append(("second", scheduler.current_time)))

        scheduler.schedule(100, first)

        assert scheduler.advance(200) == 2
        assert fired == [("first", 100), ("second", 150)]
        assert scheduler.current_time == 200

    def test_chained_tick_outside_window_waits(self, scheduler):
        """A chained tick due after the window stays pending."""
        second = Mock()
        scheduler.schedule(100, lambda: scheduler.schedule(500, second))

        scheduler.advance(200)

        second.assert_not_called()
        assert scheduler.pending_count == 1
        assert scheduler.peek_next_due() == 600

    def test_negative_advance_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.advance(-1)

    def test_negative_delay_is_immediate(self, scheduler):
        """Negative delays are treated as zero."""
        callback = Mock()
        scheduler.schedule(-50, callback)

        assert scheduler.advance(0) == 1
        callback.assert_called_once()

    def test_peek_skips_cancelled_ticks(self, scheduler):
        first = scheduler.schedule(100, Mock())
        scheduler.schedule(300, Mock())
        first.cancel()

        assert scheduler.peek_next_due() == 300

    def test_peek_when_idle(self, scheduler):
        assert scheduler.peek_next_due() is None

    def test_run_until_idle(self, scheduler):
        """Runs a self-rescheduling chain until it stops."""
        count = {"ticks": 0}

        def tick():
            count["ticks"] += 1
            if count["ticks"] < 5:
                scheduler.schedule(1000, tick)

        scheduler.schedule(1000, tick)

        assert scheduler.run_until_idle() == 5
        assert scheduler.current_time == 5000
        assert scheduler.pending_count == 0

    def test_run_until_idle_limit(self, scheduler):
        """An endless chain stops at max_ticks."""
        def tick():
            scheduler.schedule(10, tick)

        scheduler.schedule(10, tick)

        assert scheduler.run_until_idle(max_ticks=20) == 20
        assert scheduler.pending_count == 1

    def test_clear(self, scheduler):
        """Clearing cancels everything and resets the clock."""
        handle = scheduler.schedule(100, Mock())
        scheduler.advance(50)

        scheduler.clear()

        assert handle.cancelled
        assert scheduler.current_time == 0
        assert scheduler.pending_count == 0

    def test_stats(self, scheduler):
        scheduler.schedule(100, Mock())
        scheduler.schedule(200, Mock()).cancel()
        scheduler.advance(100)

        stats = scheduler.get_stats()
        assert stats["current_time"] == 100
        assert stats["fired"] == 1
        assert stats["active_entries"] == 0


class TestThreadingTimerScheduler:
    """Test the real-time scheduler."""

    def test_callback_runs(self):
        scheduler = ThreadingTimerScheduler()
        done = threading.Event()

        handle = scheduler.schedule(0, done.set)

        assert done.wait(timeout=2.0)
        assert handle.fired
        scheduler.shutdown()

    def test_cancel_before_firing(self):
        scheduler = ThreadingTimerScheduler()
        callback = Mock()

        handle = scheduler.schedule(60_000, callback)

        assert handle.cancel()
        assert handle.cancelled
        callback.assert_not_called()
        scheduler.shutdown()

    def test_pending_timers_released(self):
        scheduler = ThreadingTimerScheduler()
        done = threading.Event()

        cancelled = scheduler.schedule(60_000, Mock())
        scheduler.schedule(0, done.set)
        assert done.wait(timeout=2.0)
        assert scheduler.pending_count == 1

        cancelled.cancel()
        assert scheduler.pending_count == 0
        scheduler.shutdown()

    def test_shutdown_cancels_outstanding_timers(self):
        scheduler = ThreadingTimerScheduler()
        callback = Mock()
        scheduler.schedule(60_000, callback)
        scheduler.schedule(60_000, callback)

        scheduler.shutdown()

        assert scheduler.pending_count == 0
        callback.assert_not_called()
