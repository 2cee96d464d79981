"""
Agent Session
=============
Explicit context shared by every agent component.

Holds the state that would otherwise be process-wide: the stop signal and
exit code observed at the top of the run loop, the device identity used in
reported metadata, and the link statistics.

Module: session
Version: 1.0.0
"""

from core.constants import DEFAULT_MANUFACTURER, DEFAULT_MODEL, DEVICE_TAG
from core.types import ExitCode
from link_stats import LinkStats


class AgentSession:
    """
    Shared session context.

    Attributes:
        device_tag: Log prefix for this device
        manufacturer: Reported on every authentication
        model: Reported on every authentication
        stats: LinkStats for this run
        exit_code: Code the process terminates with
        stop_requested: Set once by the first request_stop() call
        stop_reason: Human readable reason for the stop
    """

    def __init__(
        self,
        device_tag=DEVICE_TAG,
        manufacturer=DEFAULT_MANUFACTURER,
        model=DEFAULT_MODEL,
        stats=None):
        self.device_tag = device_tag
        self.manufacturer = manufacturer
        self.model = model
        self.stats = stats if stats is not None else LinkStats()

        self.exit_code = ExitCode.SUCCESS
        self.stop_requested = False
        self.stop_reason = None

    def request_stop(self, exit_code=ExitCode.SUCCESS, reason=None):
        """
        Ask the run loop to stop after the current iteration.

        The first request wins; later requests do not overwrite its code.

        Args:
            exit_code: ExitCode to terminate with
            reason: Optional description for the shutdown log
        """
        if self.stop_requested:
            return
        self.stop_requested = True
        self.exit_code = exit_code
        self.stop_reason = reason

    def device_metadata(self):
        return {"manufacturer": self.manufacturer, "model": self.model}
