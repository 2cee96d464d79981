"""
Timing Utilities
================
Timing helpers for the HubLink agent.

- monotonic_ms(): Monotonic time in milliseconds
- Timer: Context manager measuring a code block (client setup, pump passes)
- Interval: Fixed-period due check for run loop housekeeping

Module: utils.timing
Version: 1.0.0
"""

import time


def monotonic_ms():
    """
    Return monotonic time in milliseconds.

    Returns:
        float: Current monotonic time in milliseconds
    """
    return time.monotonic() * 1000


class Timer:
    """
    Context manager for timing code blocks.

    Usage:
        timer = Timer("setup", silent=True)
        with timer:
            client.connect()
        stats.record_setup(timer.elapsed_ms(), succeeded=True)

    The elapsed time is recorded even when the block raises.
    """

    def __init__(self, name="timer", silent=False, clock=time.monotonic):
        """
        Initialize timer.

        Args:
            name: Name for logging output
            silent: If True, suppress automatic print on exit
            clock: Callable returning seconds, monotonic
        """
        self.name = name
        self.silent = silent
        self.elapsed_sec = None
        self._clock = clock
        self._start = None

    def __enter__(self):
        self._start = self._clock()
        return self

    def __exit__(self, *args):
        self.elapsed_sec = self._clock() - self._start
        if not self.silent:
            print("[{}] {:.3f}s".format(self.name, self.elapsed_sec))
        return False

    def elapsed_ms(self):
        """
        Return elapsed time in milliseconds.

        Returns:
            float: Elapsed time in milliseconds, or 0 if not yet measured
        """
        return self.elapsed_sec * 1000 if self.elapsed_sec else 0


class Interval:
    """
    Fixed-period due check.

    Usage:
        memory_check = Interval(60)
        while running:
            if memory_check.due():
                check_memory()
    """

    def __init__(self, period_sec, clock=time.monotonic):
        self.period_sec = period_sec
        self._clock = clock
        self._last = clock()

    def due(self):
        """
        Check whether the period elapsed, restarting it if so.

        Returns:
            bool: True once per period
        """
        now = self._clock()
        if now - self._last >= self.period_sec:
            self._last = now
            return True
        return False

    def reset(self):
        self._last = self._clock()
