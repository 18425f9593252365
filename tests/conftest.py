"""Hardware fakes shared by the test suite."""
from typing import List, Optional

import pytest

from dew_point_fan.actuator import ActuatorDriver, GPIOController, ManualSwitch
from dew_point_fan.corrector import ValueCorrector
from dew_point_fan.display import LogDisplay
from dew_point_fan.models import CalibrationOffsets, Location, SensorReading
from dew_point_fan.sensors import SensorChannel, SensorReader
from dew_point_fan.telemetry import TelemetrySink


class FakeGPIO:
    """Stand-in for the RPi.GPIO module."""
    BCM = 11
    OUT = 0
    IN = 1
    LOW = 0
    HIGH = 1
    PUD_OFF = 20

    def __init__(self):
        self.mode = None
        self.directions = {}
        self.levels = {}
        self.inputs = {}
        self.writes = []
        self.fail_output = False
        self.cleaned = False

    def setwarnings(self, flag):
        pass

    def setmode(self, mode):
        self.mode = mode

    def setup(self, pin, direction, pull_up_down=None):
        self.directions[pin] = direction

    def output(self, pin, level):
        if self.fail_output:
            raise RuntimeError("GPIO write failed")
        self.levels[pin] = level
        self.writes.append((pin, level))

    def input(self, pin):
        return self.inputs.get(pin, self.levels.get(pin, self.HIGH))

    def cleanup(self):
        self.cleaned = True


class FakeDHTResult:
    def __init__(self, temperature=0.0, humidity=0.0, error_code=0):
        self.temperature = temperature
        self.humidity = humidity
        self.error_code = error_code

    def is_valid(self):
        return self.error_code == 0


class FakeDHTDriver:
    """Returns the scripted results in order; the last one repeats."""

    def __init__(self, results: List[FakeDHTResult]):
        self.results = list(results)
        self.reads = 0

    def read(self):
        self.reads += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    def script(self, *results: FakeDHTResult):
        self.results = list(results)


class RecordingTelemetry(TelemetrySink):
    def __init__(self):
        self.points = []

    def publish(self, timestamp, tags, fields):
        self.points.append((timestamp, dict(tags), dict(fields)))
        return True


def good(temperature, humidity):
    return FakeDHTResult(temperature, humidity)


def bad():
    return FakeDHTResult(error_code=1)


def reading(location: Location, temperature: float, humidity: float, dew_point: Optional[float]) -> SensorReading:
    return SensorReading(location, temperature, humidity, dew_point=dew_point, valid=dew_point is not None)


NO_OFFSETS = CalibrationOffsets(temperature=(0.0, 0.0), humidity=(0.0, 0.0))


@pytest.fixture
def fake_gpio():
    return FakeGPIO()


@pytest.fixture
def gpio_controller(fake_gpio):
    return GPIOController(fake_gpio)


@pytest.fixture
def actuator(gpio_controller):
    return ActuatorDriver(gpio_controller)


@pytest.fixture
def switch(gpio_controller):
    return ManualSwitch(gpio_controller)


@pytest.fixture
def drivers():
    return {
        Location.INSIDE: FakeDHTDriver([good(22.0, 55.0)]),
        Location.OUTSIDE: FakeDHTDriver([good(5.0, 80.0)]),
    }


@pytest.fixture
def reader(drivers):
    channels = {loc: SensorChannel(driver, name=loc.short) for loc, driver in drivers.items()}
    return SensorReader(channels, ValueCorrector(NO_OFFSETS), retries=2, sleep=lambda s: None)


@pytest.fixture
def display():
    return LogDisplay()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()
