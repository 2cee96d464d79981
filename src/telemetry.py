"""
Telemetry
=========
Telemetry formatting, gating and guarded sending.

- format_telemetry(): {"<Name>":<value %3.2f>} within the message buffer size
- TelemetryGate: fires once every N authenticated poll ticks
- TelemetrySender: sends only while authenticated and reachable

Module: telemetry
Version: 1.0.0
"""

import math

from core.constants import DEBUG_ENABLED, HUB_POLL_PERIODS_PER_TELEMETRY, TELEMETRY_BUFFER_SIZE
from core.errors import HardwareError, NetworkNotReadyError, NetworkStatusError
from core.types import ExitCode


def format_telemetry(name, value, buffer_size=TELEMETRY_BUFFER_SIZE):
    """
    Format one telemetry reading.

    Args:
        name: Telemetry key, e.g. "Temperature"
        value: Numeric reading
        buffer_size: Message buffer size in bytes, including the terminator

    Returns:
        str, or None if the value is not finite or the message does not fit
    """
    if value is None or not math.isfinite(value):
        return None
    text = '{{"{}":{:3.2f}}}'.format(name, value)
    if len(text.encode("utf-8")) >= buffer_size:
        return None
    return text


class TelemetryGate:
    """
    Counts authenticated ticks and fires every `interval` ticks.

    The counter resets after firing and whenever the agent leaves the
    authenticated state.
    """

    def __init__(self, interval=HUB_POLL_PERIODS_PER_TELEMETRY):
        if interval <= 0:
            raise ValueError("Telemetry interval must be positive")
        self.interval = interval
        self.count = 0

    def tick(self):
        """
        Count one authenticated tick.

        Returns:
            bool: True if a telemetry sample is due
        """
        self.count += 1
        if self.count >= self.interval:
            self.count = 0
            return True
        return False

    def reset(self):
        self.count = 0


class TelemetrySender:
    """
    Guarded telemetry path.

    Messages are suppressed (and logged) unless the state machine is
    authenticated and the network is reachable at send time. A failed
    reachability query stops the agent.

    Args:
        machine: ConnectionStateMachine routing the message
        network: NetworkMonitor
        session: AgentSession
    """

    def __init__(self, machine, network, session):
        self.machine = machine
        self.network = network
        self.session = session

    def send(self, json_text):
        """
        Send a telemetry message if the link is usable.

        Returns:
            bool: True if the message was queued on the hub client
        """
        stats = self.session.stats

        if not self.machine.is_authenticated():
            print("[TELEMETRY] [WARNING] Cannot send message: not authenticated")
            stats.telemetry_suppressed += 1
            return False

        try:
            reachable = self.network.is_reachable()
        except NetworkNotReadyError:
            reachable = False
        except NetworkStatusError as e:
            print("[TELEMETRY] [ERROR] {}".format(e))
            self.session.request_stop(ExitCode.INTERFACE_CONNECTION_STATUS_FAILED, str(e))
            stats.telemetry_suppressed += 1
            return False

        if not reachable:
            print("[TELEMETRY] [WARNING] Cannot send message: network is not up")
            stats.telemetry_suppressed += 1
            return False

        print("[TELEMETRY] Sending message: {}".format(json_text))
        if not self.machine.send_event(json_text):
            stats.telemetry_suppressed += 1
            return False
        stats.telemetry_sent += 1
        return True

    def send_reading(self, name, value):
        """Format and send one reading; skipped readings are logged."""
        text = format_telemetry(name, value)
        if text is None:
            print("[TELEMETRY] [ERROR] Cannot format {} reading {!r}; skipped".format(name, value))
            self.session.stats.telemetry_suppressed += 1
            return False
        return self.send(text)

    def send_sample(self, sensor):
        """
        Read the sensor and send temperature and humidity messages.

        Args:
            sensor: Object with read() returning (temperature, humidity)

        Returns:
            int: Number of messages queued
        """
        try:
            temperature, humidity = sensor.read()
        except HardwareError as e:
            print("[TELEMETRY] [ERROR] Sensor read failed: {}".format(e))
            return 0

        if DEBUG_ENABLED:
            print("[TELEMETRY] [DEBUG] Sample: temperature={} humidity={}".format(temperature, humidity))

        sent = 0
        for name, value in (("Temperature", temperature), ("Humidity", humidity)):
            if self.send_reading(name, value):
                sent += 1
        return sent

    def send_button_press(self):
        return self.send('{"ButtonPress":"True"}')
