"""
Event Loop
==========
Single-threaded periodic timer loop.

All agent work is driven from one blocking wait: run_once() sleeps until the
next timer deadline (bounded by max_wait so the stop flag is observed
promptly), then fires every timer that is due, earliest deadline first.

Timers can be rearmed from inside their own handler; the reconnect backoff
does this to stretch the hub poll period.

Classes:
    - PeriodicTimer: Handler called every `period` seconds
    - EventLoop: Owns the timers and the wait

Module: event_loop
Version: 1.0.0
"""

import time

from core.constants import DEBUG_ENABLED, LOOP_MAX_WAIT_SEC
from core.errors import EventLoopError
from core.types import ExitCode


class PeriodicTimer:
    """
    Periodic timer owned by an EventLoop.

    Attributes:
        name: Name used in log output
        period: Seconds between calls
        handler: Callable invoked with no arguments when due
    """

    def __init__(self, loop, handler, period, name):
        self._loop = loop
        self.handler = handler
        self.name = name
        self.period = None
        self.deadline = None
        self.fire_count = 0
        self.set_period(period)

    def set_period(self, period):
        """
        Change the period and restart the countdown from now.

        Args:
            period: New period in seconds

        Raises:
            EventLoopError: If period is not positive
        """
        if period is None or period <= 0:
            raise EventLoopError(
                "Timer '{}' period must be positive, got {}".format(self.name, period),
                exit_code=ExitCode.MAIN_EVENT_LOOP_FAIL,
            )
        self.period = period
        self.deadline = self._loop.now() + period
        if DEBUG_ENABLED:
            print("[LOOP] [DEBUG] Timer '{}' armed: {}s".format(self.name, period))

    def is_armed(self):
        return self.deadline is not None

    def disarm(self):
        self.deadline = None

    def _fire(self, now):
        next_deadline = self.deadline + self.period
        if next_deadline <= now:
            next_deadline = now + self.period
        self.deadline = next_deadline
        self.fire_count += 1
        # Handler may call set_period(), which overrides next_deadline
        self.handler()

    def __repr__(self):
        return "PeriodicTimer(name={}, period={})".format(self.name, self.period)


class EventLoop:
    """
    Cooperative loop of periodic timers.

    Usage:
        >>> loop = EventLoop()
        >>> loop.create_periodic_timer(on_hub_tick, 2, "hub")
        >>> while not session.stop_requested:
        ...     loop.run_once()
        >>> loop.close()

    Args:
        clock: Callable returning monotonic seconds
        sleep: Callable blocking for the given seconds
    """

    def __init__(self, clock=time.monotonic, sleep=time.sleep):
        self._clock = clock
        self._sleep = sleep
        self._timers = []
        self._closed = False

    def now(self):
        return self._clock()

    @property
    def timers(self):
        return list(self._timers)

    def create_periodic_timer(self, handler, period, name="timer"):
        """
        Create and arm a periodic timer.

        Args:
            handler: Callable with no arguments
            period: Period in seconds
            name: Timer name for logging

        Returns:
            PeriodicTimer

        Raises:
            EventLoopError: If the loop is closed or the period is invalid
        """
        if self._closed:
            raise EventLoopError("Cannot create timer '{}' on a closed loop".format(name))
        if not callable(handler):
            raise EventLoopError("Timer '{}' handler is not callable".format(name))

        timer = PeriodicTimer(self, handler, period, name)
        self._timers.append(timer)
        return timer

    def dispose_timer(self, timer):
        """Disarm and forget a timer. Disposing twice is a no-op."""
        if timer is None:
            return
        timer.disarm()
        if timer in self._timers:
            self._timers.remove(timer)

    def next_deadline(self):
        deadlines = [t.deadline for t in self._timers if t.is_armed()]
        return min(deadlines) if deadlines else None

    def run_once(self, max_wait=LOOP_MAX_WAIT_SEC):
        """
        Wait for the next deadline (at most max_wait) and fire due timers.

        Args:
            max_wait: Upper bound on the blocking wait, in seconds

        Returns:
            int: Number of timer handlers called

        Raises:
            EventLoopError: If the loop is closed
        """
        if self._closed:
            raise EventLoopError("Event loop is closed")

        deadline = self.next_deadline()
        if deadline is None:
            wait = max_wait
        else:
            wait = min(max(0.0, deadline - self._clock()), max_wait)
        if wait > 0:
            self._sleep(wait)

        now = self._clock()
        due = [t for t in self._timers if t.is_armed() and t.deadline <= now]
        due.sort(key=lambda t: t.deadline)

        fired = 0
        for timer in due:
            # A previous handler may have disposed or rearmed this timer
            if timer not in self._timers or not timer.is_armed() or timer.deadline > now:
                continue
            timer._fire(now)
            fired += 1
        return fired

    def close(self):
        """Dispose every timer and refuse further runs."""
        for timer in list(self._timers):
            self.dispose_timer(timer)
        self._closed = True

    def is_closed(self):
        return self._closed
