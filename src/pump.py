"""
Hub Pump
========
Work done on every hub poll tick:

1. Query network reachability. "Not ready" counts as unreachable; any other
   query failure stops the agent.
2. Advance the connection state machine (may set up a new client).
3. While authenticated, count the tick and send a telemetry sample every
   N ticks.
4. Pump the hub client so queued events and messages are processed.

Module: pump
Version: 1.0.0
"""

from core.constants import DEBUG_ENABLED
from core.errors import NetworkNotReadyError, NetworkStatusError
from core.types import ConnectionState, ExitCode


class HubPump:
    """
    Periodic hub tick handler.

    Args:
        network: NetworkMonitor
        machine: ConnectionStateMachine
        gate: TelemetryGate
        sender: TelemetrySender
        sensor: Object with read() returning (temperature, humidity)
        session: AgentSession
    """

    def __init__(self, network, machine, gate, sender, sensor, session):
        self.network = network
        self.machine = machine
        self.gate = gate
        self.sender = sender
        self.sensor = sensor
        self.session = session
        self.tick_count = 0

        machine.on_state_change(self._on_state_change)

    def _on_state_change(self, transition):
        if transition.from_state == ConnectionState.AUTHENTICATED:
            self.gate.reset()

    def on_tick(self):
        """Run one poll tick."""
        self.tick_count += 1

        try:
            reachable = self.network.is_reachable()
        except NetworkNotReadyError as e:
            if DEBUG_ENABLED:
                print("[PUMP] [DEBUG] {}".format(e))
            reachable = False
        except NetworkStatusError as e:
            print("[PUMP] [ERROR] {}".format(e))
            self.session.request_stop(ExitCode.INTERFACE_CONNECTION_STATUS_FAILED, str(e))
            return

        self.machine.on_tick(reachable)

        if self.machine.is_authenticated() and self.gate.tick():
            self.sender.send_sample(self.sensor)

        client = self.machine.client
        if client is not None:
            client.pump()
