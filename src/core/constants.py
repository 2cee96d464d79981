"""
Core Constants
==============
Firmware-wide constants for the HubLink device agent.

Module: core.constants
Version: 1.0.0
"""

FIRMWARE_VERSION = "1.0.0"

# Verbose diagnostics (hub event traces, per-tick logging)
DEBUG_ENABLED = False

# Default log tag, replaced by config.get_device_tag() at startup
DEVICE_TAG = "[HubLink]"

# ============================================================================
# Hub poll periods (seconds)
# ============================================================================

HUB_DEFAULT_POLL_PERIOD_SEC = 2
HUB_MIN_RECONNECT_PERIOD_SEC = 60
HUB_MAX_RECONNECT_PERIOD_SEC = 10 * 60

# Only send telemetry once every N polls
HUB_POLL_PERIODS_PER_TELEMETRY = 10

# ============================================================================
# Telemetry
# ============================================================================

TELEMETRY_BUFFER_SIZE = 100

# ============================================================================
# Device twin
# ============================================================================

TWIN_PROPERTY_NAMES = ("StatusLED", "RLED", "GLED", "BLED")

DEFAULT_MANUFACTURER = "HubLink"
DEFAULT_MODEL = "HubLink Sample Device"

# ============================================================================
# Event loop and housekeeping
# ============================================================================

BUTTON_POLL_PERIOD_SEC = 0.05

# Upper bound on a single blocking wait so the stop flag is seen promptly
LOOP_MAX_WAIT_SEC = 0.5

MEMORY_CHECK_INTERVAL_SEC = 60
MEMORY_WARNING_BYTES = 10 * 1024 * 1024
MEMORY_CRITICAL_BYTES = 5 * 1024 * 1024

STATS_PRINT_INTERVAL_SEC = 60

# ============================================================================
# Networking
# ============================================================================

DEFAULT_NETWORK_INTERFACE = "wlan0"
DEFAULT_PROVISIONING_HOST = "global.azure-devices-provisioning.net"
