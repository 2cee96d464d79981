"""
Hardware
========
Peripherals behind the agent: twin LEDs, the message button and the
temperature/humidity sensor.

GPIO access goes through Adafruit Blinka (board, digitalio, busio) and the
SHT31-D driver. Simulated/logging stand-ins let the agent run on a host
without the peripherals.

Initialization failures raise HardwareError carrying the exit code of the
peripheral. Runtime actuator failures raise HardwareError without one.

Classes:
    - GpioLedActuator: LED on a digital output
    - LoggingActuator: Prints the applied value
    - Button: Digital input with press edge detection
    - Sht31Sensor: SHT31-D over I2C
    - SimulatedSensor: Random-walk temperature and humidity

Module: hardware
Version: 1.0.0
"""

import random

from core.constants import DEBUG_ENABLED, TWIN_PROPERTY_NAMES
from core.errors import HardwareError
from core.types import ExitCode

try:
    import board
    import busio
    import digitalio
except (ImportError, NotImplementedError):
    board = None
    busio = None
    digitalio = None

try:
    import adafruit_sht31d
except ImportError:
    adafruit_sht31d = None


LED_INIT_EXIT_CODES = {
    "StatusLED": ExitCode.INIT_TWIN_STATUS_LED,
    "RLED": ExitCode.INIT_TWIN_RLED,
    "GLED": ExitCode.INIT_TWIN_GLED,
    "BLED": ExitCode.INIT_TWIN_BLED,
}


def _resolve_pin(pin_name, exit_code):
    if board is None or digitalio is None:
        raise HardwareError("Blinka GPIO libraries not available", exit_code=exit_code)
    pin = getattr(board, pin_name, None)
    if pin is None:
        raise HardwareError("Unknown board pin '{}'".format(pin_name), exit_code=exit_code)
    return pin


# ============================================================================
# Actuators
# ============================================================================

class GpioLedActuator:
    """
    LED driven by a digital output.

    Args:
        name: Property name, for logging
        pin_name: Attribute name on `board`, e.g. "D8"
        active_low: True if the LED lights when the pin is low
        exit_code: Exit code used if initialization fails
    """

    def __init__(self, name, pin_name, active_low=True, exit_code=None):
        self.name = name
        self.active_low = active_low
        self.value = False

        pin = _resolve_pin(pin_name, exit_code)
        try:
            self._io = digitalio.DigitalInOut(pin)
            self._io.direction = digitalio.Direction.OUTPUT
            self._io.value = self._level(False)
        except Exception as e:
            raise HardwareError(
                "Could not open {} LED on {}: {}".format(name, pin_name, e),
                exit_code=exit_code,
            ) from e

    def _level(self, on):
        return (not on) if self.active_low else on

    def apply(self, value):
        try:
            self._io.value = self._level(value)
        except Exception as e:
            raise HardwareError("Could not set {} LED: {}".format(self.name, e)) from e
        self.value = value

    def deinit(self):
        self._io.deinit()


class LoggingActuator:
    """Actuator that only records and prints the applied value."""

    def __init__(self, name):
        self.name = name
        self.value = False

    def apply(self, value):
        self.value = value
        print("[HW] {} -> {}".format(self.name, "ON" if value else "OFF"))

    def deinit(self):
        pass


# ============================================================================
# Button
# ============================================================================

class Button:
    """
    Push button on a digital input with a pull-up.

    poll() returns True once per press (transition to pressed).
    """

    def __init__(self, pin_name, active_low=True):
        self.active_low = active_low
        self._pressed = False

        pin = _resolve_pin(pin_name, ExitCode.INIT_MESSAGE_BUTTON)
        try:
            self._io = digitalio.DigitalInOut(pin)
            self._io.direction = digitalio.Direction.INPUT
            self._io.pull = digitalio.Pull.UP if active_low else digitalio.Pull.DOWN
        except Exception as e:
            raise HardwareError(
                "Could not open button on {}: {}".format(pin_name, e),
                exit_code=ExitCode.INIT_MESSAGE_BUTTON,
            ) from e

    def is_pressed(self):
        try:
            level = self._io.value
        except Exception as e:
            raise HardwareError(
                "Could not read button: {}".format(e),
                exit_code=ExitCode.IS_BUTTON_PRESSED_GET_VALUE,
            ) from e
        return (not level) if self.active_low else bool(level)

    def poll(self):
        """
        Sample the button.

        Returns:
            bool: True if the button went from released to pressed

        Raises:
            HardwareError: If the input cannot be read
        """
        pressed = self.is_pressed()
        edge = pressed and not self._pressed
        self._pressed = pressed
        return edge

    def deinit(self):
        self._io.deinit()


# ============================================================================
# Sensors
# ============================================================================

class Sht31Sensor:
    """SHT31-D temperature/humidity sensor on the board's default I2C bus."""

    def __init__(self, address=0x44):
        if board is None or busio is None or adafruit_sht31d is None:
            raise HardwareError("SHT31-D libraries not available", exit_code=ExitCode.INIT_SENSOR)
        try:
            self._i2c = busio.I2C(board.SCL, board.SDA)
            self._sensor = adafruit_sht31d.SHT31D(self._i2c, address=address)
        except Exception as e:
            raise HardwareError("Could not open SHT31-D: {}".format(e), exit_code=ExitCode.INIT_SENSOR) from e

    def read(self):
        """
        Returns:
            tuple: (temperature in degrees C, relative humidity in %)
        """
        try:
            return self._sensor.temperature, self._sensor.relative_humidity
        except Exception as e:
            raise HardwareError("SHT31-D read failed: {}".format(e)) from e

    def deinit(self):
        self._i2c.deinit()


class SimulatedSensor:
    """
    Random-walk readings.

    Each read moves temperature and humidity by a step in [-1.0, +1.0]
    (0.05 resolution). Humidity is kept within 0..100.
    """

    def __init__(self, temperature=50.0, humidity=50.0, rng=None):
        self.temperature = temperature
        self.humidity = humidity
        self._rng = rng if rng is not None else random.Random()

    def _step(self):
        return self._rng.randint(0, 40) / 20.0 - 1.0

    def read(self):
        self.temperature += self._step()
        self.humidity = min(100.0, max(0.0, self.humidity + self._step()))
        if DEBUG_ENABLED:
            print("[HW] [DEBUG] Simulated {:.2f} C, {:.2f} %".format(self.temperature, self.humidity))
        return self.temperature, self.humidity

    def deinit(self):
        pass


# ============================================================================
# Factories
# ============================================================================

def create_actuators(hw_config):
    """
    Build one actuator per twin property.

    Args:
        hw_config: cfg['hardware'] dict

    Returns:
        dict mapping property name to actuator

    Raises:
        HardwareError: With the LED-specific exit code
    """
    leds = hw_config.get("leds", {})
    actuators = {}
    for name in TWIN_PROPERTY_NAMES:
        led = leds.get(name)
        if hw_config.get("backend") == "gpio" and led:
            actuators[name] = GpioLedActuator(
                name,
                led["pin"],
                active_low=led.get("active_low", True),
                exit_code=LED_INIT_EXIT_CODES[name],
            )
        else:
            actuators[name] = LoggingActuator(name)
    return actuators


def create_sensor(hw_config):
    if hw_config.get("sensor") == "sht31":
        return Sht31Sensor(address=hw_config.get("sensor_address", 0x44))
    return SimulatedSensor()


def create_button(hw_config):
    """Return a Button, or None if no button is configured."""
    button = hw_config.get("button")
    if hw_config.get("backend") != "gpio" or not button:
        return None
    return Button(button["pin"], active_low=button.get("active_low", True))
