from typing import Tuple

from dew_point_fan.dewpoint import round_value
from dew_point_fan.models import CalibrationOffsets


class ValueCorrector:
    """Applies the fixed per-sensor calibration offsets to raw readings."""

    def __init__(self, offsets: CalibrationOffsets = CalibrationOffsets()):
        self.offsets = offsets

    def correct(self, temperature: float, humidity: float, index: int) -> Tuple[float, float]:
        """Return (temperature, humidity) with the offsets of sensor `index` added, rounded to 0.1."""
        return (
            round_value(temperature + self.offsets.temperature[index], 1),
            round_value(humidity + self.offsets.humidity[index], 1),
        )
