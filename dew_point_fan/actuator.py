import logging

from dew_point_fan.config import FAN_PIN, FAN_STATUS_PIN

logger = logging.getLogger(__name__)


class GPIOController:
    def __init__(self, gpio):
        """
        Initialize GPIO

        Args:
            gpio: the RPi.GPIO module (or anything with the same interface)
        """
        self.gpio = gpio
        self.gpio.setwarnings(False)
        self.gpio.setmode(self.gpio.BCM)
        self.pins = {}  # Track pin levels
        logger.info("GPIO Controller: Initialized using RPi.GPIO")

    def setup_pin(self, pin, mode='output', initial_high=False):
        """
        Setup GPIO pin mode
        pin: GPIO pin number
        mode: 'output' or 'input' (input is left floating)
        """
        if mode.lower() == 'output':
            level = self.gpio.HIGH if initial_high else self.gpio.LOW
            self.gpio.setup(pin, self.gpio.OUT)
            self.gpio.output(pin, level)
            self.pins[pin] = level
        elif mode.lower() == 'input':
            self.gpio.setup(pin, self.gpio.IN, pull_up_down=self.gpio.PUD_OFF)
            self.pins[pin] = self.gpio.input(pin)
        else:
            raise ValueError("Mode must be 'output' or 'input'")

        logger.info(f"GPIO {pin} setup as {mode}")

    def write(self, pin, high: bool):
        """Drive an output pin HIGH or LOW"""
        level = self.gpio.HIGH if high else self.gpio.LOW
        self.gpio.output(pin, level)
        self.pins[pin] = level
        logger.debug(f"GPIO {pin} set {'HIGH' if high else 'LOW'}")

    def read_pin(self, pin) -> bool:
        """Read current level of GPIO pin, True = HIGH"""
        level = self.gpio.input(pin)
        self.pins[pin] = level
        return bool(level)

    def cleanup(self):
        """Clean up GPIO resources"""
        self.gpio.cleanup()
        logger.info("GPIO Controller: Cleanup complete")


class ActuatorDriver:
    """Fan relay output. The relay is active low: fan on = LOW, fan off = HIGH."""

    def __init__(self, gpio_controller: GPIOController, pin: int = FAN_PIN):
        self.gpio = gpio_controller
        self.pin = pin
        # start with the fan off
        self.gpio.setup_pin(self.pin, 'output', initial_high=True)

    def apply(self, on: bool) -> bool:
        """
        Assert the relay level for `on`. Safe to call every cycle with the same value.
        Returns False if the write failed; the next cycle writes again.
        """
        try:
            self.gpio.write(self.pin, high=not on)
        except (RuntimeError, OSError) as e:
            logger.error(f"Fan relay: failed to set GPIO {self.pin}: {e}")
            return False
        return True

    def release(self):
        """Switch the fan off before shutdown."""
        self.apply(False)


class ManualSwitch:
    """Feedback of the 3 state switch. The input is LOW while the fan is running."""

    def __init__(self, gpio_controller: GPIOController, pin: int = FAN_STATUS_PIN):
        self.gpio = gpio_controller
        self.pin = pin
        self.gpio.setup_pin(self.pin, 'input')

    def is_fan_running(self) -> bool:
        return not self.gpio.read_pin(self.pin)
