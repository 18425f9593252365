import logging
from typing import Optional, Tuple

from dew_point_fan.config import SPIKE_RESET_CYCLES
from dew_point_fan.dewpoint import round_value
from dew_point_fan.models import CycleOutcome, SensorReading, Thresholds

logger = logging.getLogger(__name__)


class VentingDecisionEngine:
    """
    Decides whether the fan should run from the inside and outside dew points.

    Call evaluate() once per poll cycle. The decision has hysteresis: the fan
    turns on when the dew point difference exceeds diff_min + hysteresis and
    turns off when it falls below diff_min; in between the previous decision
    is kept. The safety floors always turn the fan off.
    """

    def __init__(self, thresholds: Thresholds = Thresholds(), spike_reset_cycles: int = SPIKE_RESET_CYCLES):
        self.thresholds = thresholds
        self.spike_reset_cycles = spike_reset_cycles
        self.desired = False
        self.last_delta: Optional[float] = None

        # last accepted dew points (inside, outside), None until the first good cycle
        self._last_dew_points: Optional[Tuple[float, float]] = None
        self._rejected_cycles = 0

    @property
    def last_dew_points(self) -> Optional[Tuple[float, float]]:
        return self._last_dew_points

    def _is_spike(self, dew_points: Tuple[float, float]) -> bool:
        if self._last_dew_points is None:
            return False
        limit = self.thresholds.max_dew_point_jump
        return any(abs(new - old) > limit for new, old in zip(dew_points, self._last_dew_points))

    def _safety_floor(self, inside: SensorReading, outside: SensorReading) -> Optional[str]:
        """Return why venting is not allowed, or None if all floors are satisfied."""
        t = self.thresholds
        if inside.temperature < t.temp_inside_min:
            return f"inside temperature {inside.temperature:.1f}°C below {t.temp_inside_min:.1f}°C"
        if outside.temperature < t.temp_outside_min:
            return f"outside temperature {outside.temperature:.1f}°C below {t.temp_outside_min:.1f}°C"
        if inside.humidity < t.hum_inside_min:
            return f"inside humidity {inside.humidity:.1f}% below {t.hum_inside_min:.1f}%"
        return None

    def evaluate(self, inside: SensorReading, outside: SensorReading) -> CycleOutcome:
        """
        Run one decision step.

        Returns BAD_READINGS when either reading is unusable and SPIKE when a
        dew point jumped implausibly; in both cases `desired` is unchanged.
        """
        if not (inside.valid and outside.valid):
            logger.debug("VentEngine: readings not good, decision skipped")
            return CycleOutcome.BAD_READINGS

        dew_points = (inside.dew_point, outside.dew_point)
        if self._is_spike(dew_points):
            self._rejected_cycles += 1
            logger.warning(
                f"VentEngine: Deviation between dew points is too high! "
                f"last={self._last_dew_points}, now={dew_points}"
            )
            if self._rejected_cycles >= self.spike_reset_cycles:
                logger.warning(f"VentEngine: {self._rejected_cycles} cycles rejected in a row, accepting {dew_points} as new baseline")
                self._last_dew_points = dew_points
                self._rejected_cycles = 0
            return CycleOutcome.SPIKE

        # both dew points carry one decimal; compare the difference at that precision
        delta = round_value(inside.dew_point - outside.dew_point, 1)
        self.last_delta = delta
        if delta > self.thresholds.switch_on_delta:
            self.desired = True
        if delta < self.thresholds.diff_min:
            self.desired = False

        reason = self._safety_floor(inside, outside)
        if reason is not None:
            if self.desired:
                logger.info(f"VentEngine: {reason} -> venting forced OFF")
            self.desired = False

        logger.debug(f"VentEngine: delta={delta:.1f} -> desired {'on' if self.desired else 'off'}")
        self._last_dew_points = dew_points
        self._rejected_cycles = 0
        return CycleOutcome.ACCEPTED
