"""
Core Errors
===========
Exception hierarchy for the HubLink device agent.

Recoverable errors are handled inside the component that raised them
(backoff, discard, skip). Fatal errors carry the exit code the process
should terminate with.

Module: core.errors
Version: 1.0.0
"""

from core.types import ExitCode


class HubLinkError(Exception):
    """Base class for agent errors."""


class ConfigurationError(HubLinkError):
    """Required configuration is missing or invalid. Fatal."""

    def __init__(self, message, exit_code=ExitCode.LOAD_CONFIG):
        super().__init__(message)
        self.exit_code = exit_code


class SetupError(HubLinkError):
    """Hub client could not be created or connected. Retried with backoff."""


class HubClientError(HubLinkError):
    """A hub client operation (send, report, respond) failed."""


class NetworkNotReadyError(HubLinkError):
    """The networking stack is not available yet. Treated as unreachable."""


class NetworkStatusError(HubLinkError):
    """The network status query itself failed. Fatal."""


class EventLoopError(HubLinkError):
    """Event loop or timer could not be created or run. Fatal."""

    def __init__(self, message, exit_code=ExitCode.MAIN_EVENT_LOOP_FAIL):
        super().__init__(message)
        self.exit_code = exit_code


class HardwareError(HubLinkError):
    """
    Peripheral failure.

    Fatal during initialization (exit_code identifies the peripheral);
    logged and skipped when raised by an actuator at runtime.
    """

    def __init__(self, message, exit_code=None):
        super().__init__(message)
        self.exit_code = exit_code
