from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Tuple

from dew_point_fan.config import (
    DEF_HUM,
    DEF_TEMP,
    DIFF_MIN,
    HUM_CORRECTIONS,
    HUM_INSIDE_MIN,
    HYSTERESIS,
    MAX_DEW_POINT_JUMP,
    TEMP_CORRECTIONS,
    TEMP_INSIDE_MIN,
    TEMP_OUTSIDE_MIN,
    TEMP_PLAUSIBLE_MAX,
    TEMP_PLAUSIBLE_MIN,
)


class Location(Enum):
    """Where a sensor is mounted. The value doubles as the sensor index."""
    INSIDE = 0
    OUTSIDE = 1

    @property
    def label(self) -> str:
        return "Inside" if self is Location.INSIDE else "Outside"

    @property
    def short(self) -> str:
        return "I" if self is Location.INSIDE else "O"


class RemoteOverride(IntEnum):
    """Remote override as sent over the wire: 0 = not set, 1 = force ON, 2 = force OFF."""
    NONE = 0
    FORCE_ON = 1
    FORCE_OFF = 2


class CycleOutcome(Enum):
    ACCEPTED = "accepted"
    SPIKE = "spike"
    BAD_READINGS = "bad_readings"


@dataclass
class SensorReading:
    """One cycle's view of a sensor. Sentinel values mean 'never read'."""
    location: Location
    temperature: float = DEF_TEMP
    humidity: float = DEF_HUM
    dew_point: Optional[float] = None
    retries: int = 0
    valid: bool = False


@dataclass(frozen=True)
class CalibrationOffsets:
    """Additive corrections per sensor index (0 = inside, 1 = outside)."""
    temperature: Tuple[float, ...] = TEMP_CORRECTIONS
    humidity: Tuple[float, ...] = HUM_CORRECTIONS


@dataclass(frozen=True)
class Thresholds:
    diff_min: float = DIFF_MIN
    hysteresis: float = HYSTERESIS
    hum_inside_min: float = HUM_INSIDE_MIN
    temp_inside_min: float = TEMP_INSIDE_MIN
    temp_outside_min: float = TEMP_OUTSIDE_MIN
    temp_plausible_min: float = TEMP_PLAUSIBLE_MIN
    temp_plausible_max: float = TEMP_PLAUSIBLE_MAX
    max_dew_point_jump: float = MAX_DEW_POINT_JUMP

    @property
    def switch_on_delta(self) -> float:
        return self.diff_min + self.hysteresis


@dataclass
class FanState:
    """
    Process-lifetime fan state owned by the controller loop.

    desired is the computed decision, command is what the relay is driven to
    after the remote override, fan_running is the feedback of the 3 state switch.
    """
    desired: bool = False
    command: bool = False
    fan_running: bool = False
    remote_override: RemoteOverride = RemoteOverride.NONE
    last_command: bool = False
    last_fan_running: bool = False
    last_remote_override: RemoteOverride = RemoteOverride.NONE

    @property
    def manual_override_active(self) -> bool:
        return self.command != self.fan_running


@dataclass(frozen=True)
class StatusSnapshot:
    """Read-only copy of the latest cycle for the status endpoint."""
    update: str = "---"
    inside: SensorReading = field(default_factory=lambda: SensorReading(Location.INSIDE))
    outside: SensorReading = field(default_factory=lambda: SensorReading(Location.OUTSIDE))
    venting: bool = False
    fan_running: bool = False
    override_active: bool = False
    remote_override: RemoteOverride = RemoteOverride.NONE
    thresholds: Thresholds = field(default_factory=Thresholds)
