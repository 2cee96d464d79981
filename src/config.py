"""
Configuration
=============
Dict-based device configuration.

Sources, later ones win:
    1. DEFAULT_CONFIG
    2. JSON settings file (--Config <path>, or settings.json passed by the caller)
    3. Command-line overrides (--ConnectionType, --ScopeID, --Hostname, --DeviceID)

validate_user_configuration() returns an ExitCode so the entry point can
terminate with the code of the specific failure.

Module: config
Version: 1.0.0
"""

import copy
import json
import os

from core.constants import (
    BUTTON_POLL_PERIOD_SEC,
    DEFAULT_MANUFACTURER,
    DEFAULT_MODEL,
    DEFAULT_NETWORK_INTERFACE,
    DEFAULT_PROVISIONING_HOST,
    HUB_DEFAULT_POLL_PERIOD_SEC,
    HUB_MAX_RECONNECT_PERIOD_SEC,
    HUB_MIN_RECONNECT_PERIOD_SEC,
    HUB_POLL_PERIODS_PER_TELEMETRY,
)
from core.errors import ConfigurationError
from core.types import ConnectionType, ExitCode


DEFAULT_CONFIG = {
    "device_name": "HubLink",
    "connection_type": ConnectionType.NOT_DEFINED,
    "scope_id": None,
    "hostname": None,
    "device_id": None,
    "cert_file": None,
    "key_file": None,
    "pass_phrase": None,
    "provisioning_host": DEFAULT_PROVISIONING_HOST,
    "network_interface": DEFAULT_NETWORK_INTERFACE,
    "probe_host": None,
    "manufacturer": DEFAULT_MANUFACTURER,
    "model": DEFAULT_MODEL,
    "reconnect": {
        "default_period": HUB_DEFAULT_POLL_PERIOD_SEC,
        "min_period": HUB_MIN_RECONNECT_PERIOD_SEC,
        "max_period": HUB_MAX_RECONNECT_PERIOD_SEC,
    },
    "telemetry_interval_polls": HUB_POLL_PERIODS_PER_TELEMETRY,
    "button_poll_period": BUTTON_POLL_PERIOD_SEC,
    "hardware": {
        "backend": "simulated",
        "sensor": "simulated",
        "leds": {},
        "button": None,
    },
}

# Command-line option -> config key
COMMAND_LINE_OPTIONS = {
    "--ConnectionType": "connection_type",
    "--ScopeID": "scope_id",
    "--Hostname": "hostname",
    "--DeviceID": "device_id",
}

USAGE_TEXT = (
    "DPS connection type: --ConnectionType DPS --ScopeID <scope_id> --DeviceID <registration_id>\n"
    "Direct connection type: --ConnectionType Direct --Hostname <azureiothub_hostname> "
    "--DeviceID <device_id>\n"
    "Optional: --Config <settings.json>\n"
)


def _merge(base, overrides):
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_device_config(path=None):
    """
    Load device configuration.

    Args:
        path: JSON settings file, or None for defaults only

    Returns:
        dict: DEFAULT_CONFIG merged with the file contents

    Raises:
        ConfigurationError: If the file cannot be read or is not a JSON object
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path is None:
        return cfg

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError("Configuration file not found: {}".format(e)) from e
    except ValueError as e:
        raise ConfigurationError("Invalid JSON in {}: {}".format(path, e)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root in {} must be an object".format(path))

    return _merge(cfg, data)


def parse_command_line_arguments(argv, cfg=None):
    """
    Apply command-line options to a configuration.

    Accepts "--Option value" and "--Option=value". An option whose value
    starts with "-" is treated as missing its argument and skipped. Unknown
    options are ignored. --Config loads a settings file before the other
    options are applied.

    Args:
        argv: Arguments without the program name
        cfg: Base configuration, or None to start from defaults

    Returns:
        dict: Resulting configuration

    Raises:
        ConfigurationError: If the --Config file cannot be loaded
    """
    options = {}
    i = 0
    while i < len(argv):
        arg = argv[i]
        if not arg.startswith("--"):
            i += 1
            continue

        if "=" in arg:
            name, value = arg.split("=", 1)
            i += 1
        else:
            name = arg
            value = argv[i + 1] if i + 1 < len(argv) else None
            i += 2 if value is not None and not value.startswith("-") else 1

        if value is None or value.startswith("-"):
            print("[CONFIG] [WARNING] Option {} requires an argument".format(name))
            continue
        if name != "--Config" and name not in COMMAND_LINE_OPTIONS:
            print("[CONFIG] [WARNING] Ignoring unknown option {}".format(name))
            continue
        options[name] = value

    if "--Config" in options:
        cfg = load_device_config(options.pop("--Config"))
    elif cfg is None:
        cfg = load_device_config()

    for name, value in options.items():
        key = COMMAND_LINE_OPTIONS[name]
        print("[CONFIG] {}: {}".format(name[2:], value))
        if key == "connection_type" and value not in ConnectionType.ALL:
            value = ConnectionType.NOT_DEFINED
        cfg[key] = value

    return cfg


def validate_user_configuration(cfg):
    """
    Check that the connection settings are complete.

    Returns:
        int: ExitCode.SUCCESS, or the code of the failed check
    """
    connection_type = cfg.get("connection_type")

    if connection_type not in ConnectionType.ALL:
        print("[CONFIG] [ERROR] Connection type must be one of {}".format(", ".join(ConnectionType.ALL)))
        return ExitCode.VALIDATE_CONNECTION_TYPE

    if connection_type == ConnectionType.DPS:
        if not cfg.get("scope_id"):
            print("[CONFIG] [ERROR] DPS connection requires a scope ID")
            return ExitCode.VALIDATE_SCOPE_ID
        print("[CONFIG] Using DPS Connection: Azure IoT DPS Scope ID {}".format(cfg["scope_id"]))

    if connection_type == ConnectionType.DIRECT:
        if not cfg.get("hostname"):
            print("[CONFIG] [ERROR] Direct connection requires an IoT hub hostname")
            return ExitCode.VALIDATE_IOT_HUB_HOSTNAME
        print("[CONFIG] Using Direct Connection: Azure IoT Hub Hostname {}".format(cfg["hostname"]))

    device_id = cfg.get("device_id")
    if not device_id:
        print("[CONFIG] [ERROR] A device ID is required")
        return ExitCode.VALIDATE_DEVICE_ID
    if not isinstance(device_id, str):
        print("[CONFIG] [ERROR] Device ID must be a string, got {!r}".format(device_id))
        return ExitCode.VALIDATE_DEVICE_ID
    if device_id != device_id.lower():
        print("[CONFIG] [ERROR] Device ID must be in lowercase")
        return ExitCode.VALIDATE_DEVICE_ID

    for key in ("cert_file", "key_file"):
        path = cfg.get(key)
        if not path or not os.path.isfile(path):
            print("[CONFIG] [ERROR] {} not found: {}".format(key, path))
            return ExitCode.VALIDATE_CERTIFICATE

    return ExitCode.SUCCESS


def print_usage():
    print(USAGE_TEXT)


def get_device_tag(cfg):
    """
    Build the log prefix for this device.

    Returns:
        str: e.g. "[HubLink:sensor-01]"
    """
    name = cfg.get("device_name") or "HubLink"
    device_id = cfg.get("device_id")
    if device_id:
        return "[{}:{}]".format(name, device_id)
    return "[{}]".format(name)
