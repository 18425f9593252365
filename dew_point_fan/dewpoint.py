"""
Dew point calculation using the Magnus approximation.

Two sets of constants are used: one over water (t >= 0°C) and one over ice
(t < 0°C). t == 0 uses the constants over water.
"""
import math
from typing import Tuple

# saturation vapor pressure at 0°C in hPa
E0 = 6.1078


def magnus_constants(temperature: float) -> Tuple[float, float]:
    """Return the (a, b) Magnus constants for the given temperature in °C."""
    if temperature >= 0:
        return 7.5, 237.3
    return 7.6, 240.7


def round_value(value: float, precision: int = 1) -> float:
    """Round half away from zero, so 0.05 -> 0.1 and -0.05 -> -0.1."""
    ratio = 10 ** precision
    return math.copysign(math.floor(abs(value) * ratio + 0.5) / ratio, value)


def calc_dew_point(temperature: float, humidity: float) -> float:
    """
    Calculate the dew point in °C without rounding.

    Args:
        temperature: air temperature in °C
        humidity: relative humidity in % (must be > 0)
    """
    a, b = magnus_constants(temperature)

    # saturation vapor pressure in hPa
    sdd = E0 * 10 ** ((a * temperature) / (b + temperature))

    # vapor pressure in hPa
    dd = sdd * (humidity / 100)

    v = math.log10(dd / E0)

    return (b * v) / (a - v)


def dew_point(temperature: float, humidity: float) -> float:
    """Dew point in °C rounded to one decimal, as shown and logged everywhere."""
    return round_value(calc_dew_point(temperature, humidity), 1)


def relative_humidity(temperature: float, dew_point_c: float) -> float:
    """Inverse of calc_dew_point: relative humidity in % for a temperature and dew point."""
    a, b = magnus_constants(temperature)
    return 100 * 10 ** ((a * dew_point_c) / (b + dew_point_c) - (a * temperature) / (b + temperature))
