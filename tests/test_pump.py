"""
Hub Pump Tests
==============

Tests for the per-tick HubPump: reachability handling, state machine advance,
telemetry gating and client pumping.

Run with: python -m pytest tests/test_pump.py -v

Module: tests.test_pump
Version: 1.0.0
"""

import pytest
import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from backoff import ReconnectBackoff, ReconnectPolicy
from core.errors import NetworkNotReadyError, NetworkStatusError
from core.types import ConnectionState, ExitCode
from pump import HubPump
from session import AgentSession
from state import ConnectionStateMachine
from telemetry import TelemetryGate, TelemetrySender

from tests.mocks.hub import FakeNetwork, FakeProvisioner
from tests.mocks.hardware import MockSensor


# ============================================================================
# Fixtures
# ============================================================================

class PumpHarness:
    """Real state machine, gate and sender over fake transport and network."""

    def __init__(self, outcomes=None, reachable=True):
        self.session = AgentSession()
        self.network = FakeNetwork(reachable=reachable)
        self.provisioner = FakeProvisioner(outcomes=outcomes)
        self.backoff = ReconnectBackoff(ReconnectPolicy())
        self.machine = ConnectionStateMachine(self.provisioner, self.backoff, self.session)
        self.gate = TelemetryGate(10)
        self.sender = TelemetrySender(self.machine, self.network, self.session)
        self.sensor = MockSensor([(22.0, 45.0)])
        self.pump = HubPump(self.network, self.machine, self.gate, self.sender, self.sensor, self.session)

    def authenticate(self):
        self.pump.on_tick()
        self.machine.client.queue_authenticated()
        self.machine.client.pump()
        assert self.machine.get_current_state() == ConnectionState.AUTHENTICATED

    def telemetry(self):
        client = self.machine.client
        return [m for m in client.sent_events] if client else []


@pytest.fixture
def harness():
    return PumpHarness()


# ============================================================================
# Reachability Tests
# ============================================================================

class TestReachability:
    """Test how reachability results drive the tick."""

    def test_unreachable_no_setup(self):
        harness = PumpHarness(reachable=False)
        harness.pump.on_tick()
        assert harness.provisioner.clients == []

    def test_not_ready_treated_as_unreachable(self, harness):
        harness.network.error = NetworkNotReadyError("not ready")

        harness.pump.on_tick()

        assert harness.provisioner.clients == []
        assert harness.session.stop_requested is False

    def test_status_failure_stops_agent(self, harness):
        harness.network.error = NetworkStatusError("ioctl failed")

        harness.pump.on_tick()

        assert harness.session.stop_requested is True
        assert harness.session.exit_code == ExitCode.INTERFACE_CONNECTION_STATUS_FAILED
        assert harness.provisioner.clients == []

    def test_reachable_sets_up_client(self, harness):
        harness.pump.on_tick()

        assert harness.machine.get_current_state() == ConnectionState.AUTHENTICATION_INITIATED


# ============================================================================
# Client Pump Tests
# ============================================================================

class TestClientPump:
    """Test that the client is pumped every tick."""

    def test_client_pumped_on_setup_tick(self, harness):
        harness.pump.on_tick()
        assert harness.machine.client.pump_count == 1

    def test_client_pumped_when_unreachable(self, harness):
        harness.pump.on_tick()
        harness.network.reachable = False

        harness.pump.on_tick()

        assert harness.machine.client.pump_count == 2

    def test_status_event_delivered_by_pump(self, harness):
        harness.pump.on_tick()
        harness.machine.client.queue_authenticated()

        harness.pump.on_tick()

        assert harness.machine.get_current_state() == ConnectionState.AUTHENTICATED


# ============================================================================
# Telemetry Gate Tests
# ============================================================================

class TestTelemetryGating:
    """Test telemetry cadence while authenticated."""

    def test_sample_every_ten_authenticated_ticks(self, harness):
        harness.authenticate()

        for _ in range(9):
            harness.pump.on_tick()
        assert harness.telemetry() == []

        harness.pump.on_tick()
        assert harness.telemetry() == ['{"Temperature":22.00}', '{"Humidity":45.00}']

        for _ in range(10):
            harness.pump.on_tick()
        assert len(harness.telemetry()) == 4

    def test_no_telemetry_while_not_authenticated(self, harness):
        for _ in range(25):
            harness.pump.on_tick()

        assert harness.machine.get_current_state() == ConnectionState.AUTHENTICATION_INITIATED
        assert harness.telemetry() == []
        assert harness.gate.count == 0

    def test_gate_reset_on_leaving_authenticated(self, harness):
        harness.authenticate()
        for _ in range(6):
            harness.pump.on_tick()
        assert harness.gate.count == 6

        harness.machine.client.queue_disconnected()
        harness.pump.on_tick()

        assert harness.machine.get_current_state() == ConnectionState.NOT_AUTHENTICATED
        assert harness.gate.count == 0
