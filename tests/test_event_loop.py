"""
Event Loop Tests
================

Tests for EventLoop and PeriodicTimer using a manual clock.

Run with: python -m pytest tests/test_event_loop.py -v

Module: tests.test_event_loop
Version: 1.0.0
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from core.errors import EventLoopError
from event_loop import EventLoop


class ManualClock:
    """Clock advanced only by the loop's sleep calls."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def loop(clock):
    return EventLoop(clock=clock, sleep=clock.sleep)


class TestTimerCreation:
    """Test timer construction."""

    def test_invalid_period_rejected(self, loop):
        with pytest.raises(EventLoopError):
            loop.create_periodic_timer(MagicMock(), 0, "bad")

    def test_non_callable_rejected(self, loop):
        with pytest.raises(EventLoopError):
            loop.create_periodic_timer("not callable", 1, "bad")

    def test_closed_loop_rejects_timers(self, loop):
        loop.close()
        with pytest.raises(EventLoopError):
            loop.create_periodic_timer(MagicMock(), 1, "late")


class TestRunOnce:
    """Test waiting and firing."""

    def test_wait_capped_by_max_wait(self, loop, clock):
        handler = MagicMock()
        loop.create_periodic_timer(handler, 2, "hub")

        assert loop.run_once(max_wait=0.5) == 0
        assert clock.sleeps == [0.5]
        handler.assert_not_called()

    def test_fires_at_deadline(self, loop, clock):
        handler = MagicMock()
        loop.create_periodic_timer(handler, 2, "hub")

        for _ in range(4):
            loop.run_once(max_wait=0.5)

        assert clock.now == pytest.approx(2.0)
        handler.assert_called_once()

    def test_periodic(self, loop, clock):
        handler = MagicMock()
        loop.create_periodic_timer(handler, 1, "tick")

        while clock.now < 10:
            loop.run_once(max_wait=5)

        assert handler.call_count == 10

    def test_no_timers_waits_max(self, loop, clock):
        loop.run_once(max_wait=0.25)
        assert clock.sleeps == [0.25]

    def test_earliest_deadline_first(self, loop, clock):
        order = []
        loop.create_periodic_timer(lambda: order.append("slow"), 3, "slow")
        loop.create_periodic_timer(lambda: order.append("fast"), 1, "fast")

        while clock.now < 3:
            loop.run_once(max_wait=10)

        assert order == ["fast", "fast", "fast", "slow"] or order == ["fast", "fast", "slow", "fast"]
        assert order.count("slow") == 1

    def test_closed_loop_raises(self, loop):
        loop.close()
        with pytest.raises(EventLoopError):
            loop.run_once()


class TestRearm:
    """Test changing a timer's period."""

    def test_set_period_restarts_countdown(self, loop, clock):
        handler = MagicMock()
        timer = loop.create_periodic_timer(handler, 2, "hub")

        clock.now = 1.5
        timer.set_period(60)
        loop.run_once(max_wait=1000)

        assert clock.now == pytest.approx(61.5)
        handler.assert_called_once()

    def test_rearm_from_own_handler(self, loop, clock):
        fired_at = []

        def handler():
            fired_at.append(clock.now)
            timer.set_period(timer.period * 2)

        timer = loop.create_periodic_timer(handler, 1, "backoff")

        for _ in range(3):
            loop.run_once(max_wait=1000)

        assert fired_at == pytest.approx([1.0, 3.0, 7.0])

    def test_invalid_rearm_rejected(self, loop):
        timer = loop.create_periodic_timer(MagicMock(), 1, "hub")
        with pytest.raises(EventLoopError):
            timer.set_period(-5)


class TestDispose:
    """Test timer disposal."""

    def test_disposed_timer_does_not_fire(self, loop, clock):
        handler = MagicMock()
        timer = loop.create_periodic_timer(handler, 1, "hub")

        loop.dispose_timer(timer)
        loop.run_once(max_wait=2)

        handler.assert_not_called()
        assert loop.timers == []

    def test_dispose_twice_is_noop(self, loop):
        timer = loop.create_periodic_timer(MagicMock(), 1, "hub")
        loop.dispose_timer(timer)
        loop.dispose_timer(timer)
        loop.dispose_timer(None)

    def test_handler_disposing_other_timer(self, loop, clock):
        second = MagicMock()
        timers = {}

        def first():
            loop.dispose_timer(timers["second"])

        timers["first"] = loop.create_periodic_timer(first, 1, "first")
        timers["second"] = loop.create_periodic_timer(second, 1, "second")

        loop.run_once(max_wait=1)

        second.assert_not_called()
