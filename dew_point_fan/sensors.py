import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from dew_point_fan.config import SENSOR_RETRIES, SENSOR_RETRY_DELAY_S
from dew_point_fan.corrector import ValueCorrector
from dew_point_fan.dewpoint import dew_point
from dew_point_fan.models import Location, SensorReading, Thresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawReading:
    temperature: float
    humidity: float
    retried: int = 0


@dataclass(frozen=True)
class ReadFailure:
    """All attempts of a bounded read failed."""
    attempts: int
    reason: str = ""

    @property
    def retried(self) -> int:
        return max(self.attempts - 1, 0)


class DHTResult:
    """Read result with the interface of dht11.DHT11Result."""

    ERR_NO_ERROR = 0
    ERR_MISSING_DATA = 1
    ERR_CRC = 2

    def __init__(self, error_code: int, temperature: float = 0.0, humidity: float = 0.0):
        self.error_code = error_code
        self.temperature = temperature
        self.humidity = humidity

    def is_valid(self) -> bool:
        return self.error_code == DHTResult.ERR_NO_ERROR


class CircuitPythonDHT:
    """
    Adapts an adafruit_dht device (DHT22 or DHT11) to the read() interface of dht11.DHT11.

    adafruit_dht raises RuntimeError for timeouts and checksum errors and may
    report None until the first complete frame arrived.
    """

    def __init__(self, device):
        self.device = device

    def read(self) -> DHTResult:
        try:
            temperature = self.device.temperature
            humidity = self.device.humidity
        except RuntimeError as e:
            logger.debug(f"DHT: {e}")
            return DHTResult(DHTResult.ERR_CRC)
        if temperature is None or humidity is None:
            return DHTResult(DHTResult.ERR_MISSING_DATA)
        return DHTResult(DHTResult.ERR_NO_ERROR, temperature, humidity)

    def close(self):
        self.device.exit()


class SensorChannel:
    """
    One DHT temperature/humidity sensor.

    Wraps a driver object whose read() returns a result with is_valid(),
    temperature, humidity and error_code: dht11.DHT11 or CircuitPythonDHT.
    """

    def __init__(self, driver, name: str = ""):
        self.driver = driver
        self.name = name

    def close(self):
        if hasattr(self.driver, "close"):
            self.driver.close()

    def read_once(self) -> Optional[Tuple[float, float]]:
        """
        Single read attempt.
        Returns (temperature, humidity) or None if the sensor delivered garbage.
        """
        result = self.driver.read()
        if not result.is_valid():
            logger.debug(f"DHT {self.name}: read error code {result.error_code}")
            return None
        if not 0 <= result.humidity <= 100:
            logger.debug(f"DHT {self.name}: invalid humidity {result.humidity}%")
            return None
        return float(result.temperature), float(result.humidity)


def read_with_retry(
    attempt: Callable[[], Optional[Tuple[float, float]]],
    retries: int = SENSOR_RETRIES,
    delay: float = SENSOR_RETRY_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Union[RawReading, ReadFailure]:
    """
    Call `attempt` up to 1 + retries times until it returns a value.

    A failed attempt is one that returns None or raises. Normal transient
    failure is reported as a ReadFailure value, never raised.
    """
    reason = ""
    for attempt_no in range(retries + 1):
        try:
            values = attempt()
        except (OSError, RuntimeError) as e:
            reason = str(e)
            logger.debug(f"Read attempt {attempt_no + 1} raised: {e}")
            values = None
        if values is not None:
            temperature, humidity = values
            return RawReading(temperature, humidity, retried=attempt_no)
        if attempt_no < retries:
            sleep(delay)
    return ReadFailure(attempts=retries + 1, reason=reason or "no valid data")


class SensorReader:
    """
    Reads both sensors: bounded retries, calibration, plausibility guard and dew point.
    """

    def __init__(
        self,
        channels: Dict[Location, SensorChannel],
        corrector: ValueCorrector,
        thresholds: Thresholds = Thresholds(),
        retries: int = SENSOR_RETRIES,
        retry_delay: float = SENSOR_RETRY_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.channels = channels
        self.corrector = corrector
        self.thresholds = thresholds
        self.retries = retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def is_plausible(self, temperature: float, humidity: float) -> bool:
        if humidity <= 0:
            return False
        return self.thresholds.temp_plausible_min <= temperature <= self.thresholds.temp_plausible_max

    def read(self, location: Location) -> Union[SensorReading, ReadFailure]:
        """
        Read one location.

        Returns a SensorReading (valid=False when the temperature is outside
        the accepted range) or a ReadFailure when the retry budget is used up.
        """
        channel = self.channels[location]
        result = read_with_retry(channel.read_once, self.retries, self.retry_delay, self._sleep)
        if isinstance(result, ReadFailure):
            logger.error(f"Sensor {location.short}: no reading after {result.attempts} attempts ({result.reason})")
            return result

        temperature, humidity = self.corrector.correct(result.temperature, result.humidity, location.value)
        reading = SensorReading(
            location=location,
            temperature=temperature,
            humidity=humidity,
            retries=result.retried,
        )
        if not self.is_plausible(temperature, humidity):
            logger.warning(
                f"Sensor {location.short}: reading is out of range: {temperature:5.1f}°C, {humidity:5.1f}%"
            )
            return reading

        reading.dew_point = dew_point(temperature, humidity)
        reading.valid = True
        logger.info(
            f"Sensor {location.short}: Dewpoint ={reading.dew_point:5.1f}, Temperature ={temperature:5.1f}°C, "
            f"Humidity ={humidity:5.1f}% (retried {result.retried} times)"
        )
        return reading
