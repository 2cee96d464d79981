"""
Reconnect Backoff
=================
Computes the hub poll period after connection setup attempts.

After a failed setup the poll period jumps from the default cadence to the
minimum reconnect period, then doubles on every further failure up to the
maximum. A successful setup restores the default cadence. Every change is
pushed to the registered listeners so the hub timer can be rearmed.

Module: backoff
Version: 1.0.0
"""

from core.constants import (
    HUB_DEFAULT_POLL_PERIOD_SEC,
    HUB_MIN_RECONNECT_PERIOD_SEC,
    HUB_MAX_RECONNECT_PERIOD_SEC,
)


class ReconnectPolicy:
    """
    Poll period bounds and current value, in seconds.

    Attributes:
        default_period: Cadence while connected or never failed
        min_period: First period after a failure
        max_period: Upper bound for the doubled period
        current_period: Period the hub timer is armed with
    """

    def __init__(
        self,
        default_period=HUB_DEFAULT_POLL_PERIOD_SEC,
        min_period=HUB_MIN_RECONNECT_PERIOD_SEC,
        max_period=HUB_MAX_RECONNECT_PERIOD_SEC):
        if default_period <= 0 or min_period <= 0:
            raise ValueError("Poll periods must be positive")
        if min_period > max_period:
            raise ValueError(
                "min_period ({}) exceeds max_period ({})".format(min_period, max_period)
            )
        # A backed-off period must never equal the default one
        if default_period >= min_period:
            raise ValueError(
                "default_period ({}) must be below min_period ({})".format(default_period, min_period)
            )
        self.default_period = default_period
        self.min_period = min_period
        self.max_period = max_period
        self.current_period = default_period

    def is_backing_off(self):
        return self.current_period != self.default_period

    def __repr__(self):
        return "ReconnectPolicy(default={}, min={}, max={}, current={})".format(
            self.default_period, self.min_period, self.max_period, self.current_period
        )


class ReconnectBackoff:
    """
    Backoff scheduler driving a ReconnectPolicy.

    Usage:
        >>> backoff = ReconnectBackoff(ReconnectPolicy())
        >>> backoff.on_rearm(lambda period: hub_timer.set_period(period))
        >>> backoff.on_failure()   # 60
        >>> backoff.on_failure()   # 120
        >>> backoff.on_success()   # 2
    """

    def __init__(self, policy=None):
        self.policy = policy if policy is not None else ReconnectPolicy()
        self._rearm_listeners = []

    @property
    def current_period(self):
        return self.policy.current_period

    def on_rearm(self, listener):
        """
        Register a listener called with the new period after every update.

        Args:
            listener: Callable taking the period in seconds
        """
        self._rearm_listeners.append(listener)

    def on_failure(self):
        """
        Advance the period after a failed setup attempt.

        Returns:
            The new period in seconds
        """
        policy = self.policy
        if policy.current_period == policy.default_period:
            policy.current_period = policy.min_period
        else:
            policy.current_period = min(policy.current_period * 2, policy.max_period)

        self._rearm()
        return policy.current_period

    def on_success(self):
        """
        Restore the default period after a successful setup.

        Returns:
            The default period in seconds
        """
        self.policy.current_period = self.policy.default_period
        self._rearm()
        return self.policy.current_period

    def _rearm(self):
        for listener in self._rearm_listeners:
            listener(self.policy.current_period)
