"""
Telemetry Tests
===============

Tests for telemetry formatting, the telemetry gate and the guarded sender.

Run with: python -m pytest tests/test_telemetry.py -v

Module: tests.test_telemetry
Version: 1.0.0
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from core.errors import HardwareError, NetworkNotReadyError, NetworkStatusError
from core.types import ExitCode
from session import AgentSession
from telemetry import TelemetryGate, TelemetrySender, format_telemetry

from tests.mocks.hub import FakeNetwork
from tests.mocks.hardware import MockSensor


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def session():
    return AgentSession()


@pytest.fixture
def machine():
    machine = MagicMock()
    machine.is_authenticated.return_value = True
    machine.send_event.return_value = True
    return machine


@pytest.fixture
def network():
    return FakeNetwork(reachable=True)


@pytest.fixture
def sender(machine, network, session):
    return TelemetrySender(machine, network, session)


# ============================================================================
# Formatting Tests
# ============================================================================

class TestFormatTelemetry:
    """Test message formatting."""

    def test_two_decimals(self):
        assert format_telemetry("Temperature", 21.456) == '{"Temperature":21.46}'

    def test_negative(self):
        assert format_telemetry("Temperature", -3.5) == '{"Temperature":-3.50}'

    def test_minimum_width(self):
        assert format_telemetry("Humidity", 0) == '{"Humidity":0.00}'

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), None])
    def test_non_finite_rejected(self, value):
        assert format_telemetry("Temperature", value) is None

    def test_too_long_rejected(self):
        assert format_telemetry("Temperature", 1e95) is None

    def test_custom_buffer_size(self):
        assert format_telemetry("Humidity", 12.0, buffer_size=10) is None


# ============================================================================
# Gate Tests
# ============================================================================

class TestTelemetryGate:
    """Test the every-N-ticks gate."""

    def test_fires_on_tenth_tick(self):
        gate = TelemetryGate(10)
        results = [gate.tick() for _ in range(10)]
        assert results == [False] * 9 + [True]

    def test_counter_resets_after_firing(self):
        gate = TelemetryGate(10)
        for _ in range(10):
            gate.tick()
        assert gate.count == 0

    def test_fires_once_per_interval(self):
        gate = TelemetryGate(10)
        assert sum(gate.tick() for _ in range(35)) == 3

    def test_reset(self):
        gate = TelemetryGate(10)
        for _ in range(7):
            gate.tick()
        gate.reset()
        assert [gate.tick() for _ in range(3)] == [False, False, False]

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            TelemetryGate(0)


# ============================================================================
# Sender Tests
# ============================================================================

class TestTelemetrySender:
    """Test the send guard."""

    def test_sends_when_authenticated_and_reachable(self, sender, machine, session):
        assert sender.send('{"Temperature":20.00}') is True

        machine.send_event.assert_called_once_with('{"Temperature":20.00}')
        assert session.stats.telemetry_sent == 1

    def test_suppressed_when_not_authenticated(self, sender, machine, network, session):
        machine.is_authenticated.return_value = False

        assert sender.send('{"Temperature":20.00}') is False

        machine.send_event.assert_not_called()
        assert network.calls == 0
        assert session.stats.telemetry_suppressed == 1

    def test_suppressed_when_unreachable(self, sender, machine, network):
        network.reachable = False

        assert sender.send("{}") is False
        machine.send_event.assert_not_called()

    def test_suppressed_when_not_ready(self, sender, machine, network, session):
        network.error = NetworkNotReadyError("not ready")

        assert sender.send("{}") is False
        assert session.stop_requested is False

    def test_status_failure_requests_stop(self, sender, machine, network, session):
        network.error = NetworkStatusError("query failed")

        assert sender.send("{}") is False

        assert session.stop_requested is True
        assert session.exit_code == ExitCode.INTERFACE_CONNECTION_STATUS_FAILED
        machine.send_event.assert_not_called()

    def test_send_sample_sends_both_readings(self, sender, machine):
        assert sender.send_sample(MockSensor([(25.0, 61.237)])) == 2

        assert [c.args[0] for c in machine.send_event.call_args_list] == [
            '{"Temperature":25.00}',
            '{"Humidity":61.24}',
        ]

    def test_non_finite_reading_skipped(self, sender, machine, session):
        assert sender.send_sample(MockSensor([(float("nan"), 40.0)])) == 1

        machine.send_event.assert_called_once_with('{"Humidity":40.00}')
        assert session.stats.telemetry_suppressed == 1

    def test_sensor_failure_skips_sample(self, sender, machine):
        assert sender.send_sample(MockSensor(error=HardwareError("i2c nack"))) == 0
        machine.send_event.assert_not_called()

    def test_button_press_message(self, sender, machine):
        sender.send_button_press()
        machine.send_event.assert_called_once_with('{"ButtonPress":"True"}')
