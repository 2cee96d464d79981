"""
Twin Synchronizer
=================
Applies desired device-twin properties to local actuators and echoes the
reported state back to the hub.

Payloads arrive either as a full twin ({"desired": {...}, "reported": {...}})
or as a desired-properties patch ({...}). Each known property present with a
boolean value (JSON true/false or integer 0/1) is applied to its actuator and
then reported as its own message, {"<Name>":true|false}, even when the value
did not change.

Classes:
    - TwinProperty: Named boolean bound to an actuator
    - TwinSynchronizer: Payload parsing, actuation and reporting

Module: twin
Version: 1.0.0
"""

import json
import os

from core.constants import DEBUG_ENABLED, TWIN_PROPERTY_NAMES


def to_bool(value):
    """
    Cast a twin value to bool.

    Returns:
        bool, or None if the value is not a JSON boolean or the integer 0/1
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    return None


class TwinProperty:
    """
    A named boolean twin property.

    Attributes:
        name: Property name in the twin document
        actuator: Object with apply(value)
        desired: Last desired value received
        reported: Last value successfully applied and reported
    """

    def __init__(self, name, actuator, desired=False, reported=False):
        self.name = name
        self.actuator = actuator
        self.desired = desired
        self.reported = reported

    def __repr__(self):
        return "TwinProperty(name={}, desired={}, reported={})".format(
            self.name, self.desired, self.reported)


class TwinSynchronizer:
    """
    Desired-to-reported synchronization for a fixed set of properties.

    Usage:
        >>> properties = [TwinProperty("StatusLED", status_led), ...]
        >>> twin = TwinSynchronizer(properties, machine.report_state)
        >>> twin.on_desired_properties_received(b'{"desired": {"StatusLED": true}}')
        1

    Args:
        properties: Iterable of TwinProperty, processed in this order
        report_callback: Called with the JSON text of each reported update
    """

    def __init__(self, properties, report_callback):
        self._properties = {}
        for prop in properties:
            self._properties[prop.name] = prop
        self._report = report_callback

    @property
    def properties(self):
        return list(self._properties.values())

    def get_property(self, name):
        return self._properties.get(name)

    def on_desired_properties_received(self, raw_payload):
        """
        Handle a twin document or desired-properties patch.

        Malformed payloads are logged and discarded without state change.
        Allocation failure while handling the payload aborts the process.

        Args:
            raw_payload: UTF-8 JSON bytes

        Returns:
            int: Number of properties applied and reported
        """
        try:
            return self._synchronize(raw_payload)
        except MemoryError:
            print("[TWIN] [ERROR] Out of memory while handling twin update; aborting")
            os.abort()

    def _synchronize(self, raw_payload):
        try:
            root = json.loads(raw_payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            print("[TWIN] [WARNING] Cannot parse twin payload: {}".format(e))
            return 0

        if not isinstance(root, dict):
            print("[TWIN] [WARNING] Twin payload is not a JSON object; discarded")
            return 0

        # Full twin carries "desired"; a patch is the desired set itself
        desired_set = root.get("desired")
        if not isinstance(desired_set, dict):
            desired_set = root

        applied = 0
        for prop in self._properties.values():
            if prop.name not in desired_set:
                continue

            value = to_bool(desired_set[prop.name])
            if value is None:
                if DEBUG_ENABLED:
                    print("[TWIN] [DEBUG] Ignoring non-boolean {}={!r}".format(
                        prop.name, desired_set[prop.name]))
                continue

            prop.desired = value
            try:
                prop.actuator.apply(value)
            except Exception as e:
                print("[TWIN] [ERROR] Failed to apply {}={}: {}".format(prop.name, value, e))
                continue

            prop.reported = value
            print("[TWIN] Received desired state {}: {}".format(prop.name, "true" if value else "false"))
            self._report(json.dumps({prop.name: prop.reported}, separators=(",", ":")))
            applied += 1

        return applied

    def turn_off_all(self):
        """Drive every actuator to False without reporting (shutdown)."""
        for prop in self._properties.values():
            try:
                prop.actuator.apply(False)
            except Exception as e:
                print("[TWIN] [WARNING] Failed to turn off {}: {}".format(prop.name, e))


def build_twin_properties(actuators):
    """
    Build TwinProperty objects for the known property names.

    Args:
        actuators: dict mapping property name to actuator

    Returns:
        list of TwinProperty in TWIN_PROPERTY_NAMES order
    """
    return [TwinProperty(name, actuators[name]) for name in TWIN_PROPERTY_NAMES if name in actuators]
