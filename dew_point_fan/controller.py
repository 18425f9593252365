import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Optional

from dew_point_fan.actuator import ActuatorDriver, ManualSwitch
from dew_point_fan.config import CYCLE_PERIOD_S, DATE_TIME_FORMAT
from dew_point_fan.display import DisplaySink, dew_point_line, reading_line, retry_line, status_line
from dew_point_fan.engine import VentingDecisionEngine
from dew_point_fan.models import CycleOutcome, FanState, Location, SensorReading, StatusSnapshot
from dew_point_fan.override import OverrideArbiter
from dew_point_fan.sensors import ReadFailure, SensorReader
from dew_point_fan.status import StatusBoard
from dew_point_fan.telemetry import TelemetrySink, cycle_fields

logger = logging.getLogger(__name__)


class DewPointFanController:
    """
    The control loop: read both sensors, decide, apply overrides, drive the
    relay, then push the result to the display, telemetry and status board.
    Call run_cycle() once per period, or run() to loop until stopped.
    """

    def __init__(
        self,
        reader: SensorReader,
        engine: VentingDecisionEngine,
        arbiter: OverrideArbiter,
        actuator: ActuatorDriver,
        switch: ManualSwitch,
        display: DisplaySink,
        telemetry: TelemetrySink,
        board: StatusBoard,
        ip_address: str = "",
        period_s: float = CYCLE_PERIOD_S,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.reader = reader
        self.engine = engine
        self.arbiter = arbiter
        self.actuator = actuator
        self.switch = switch
        self.display = display
        self.telemetry = telemetry
        self.board = board
        self.ip_address = ip_address
        self.period_s = period_s
        self._clock = clock

        self.state = FanState()
        self.readings: Dict[Location, SensorReading] = {loc: SensorReading(loc) for loc in Location}
        self.is_alive = False
        self.venting = "---"
        self.update = "---"

    def show_startup(self):
        self.display.backlight(True)
        self.display.show_line(0, "Starting...")
        self.display.show_line(3, status_line(self.ip_address, self.is_alive, self.state.remote_override, ""))

    def _read_sensors(self) -> bool:
        readings_good = True
        for location in Location:
            previous = self.readings[location]
            result = self.reader.read(location)
            if isinstance(result, ReadFailure):
                # keep the last values for display, but never decide on them
                self.readings[location] = replace(previous, retries=result.retried, valid=False)
                self.display.show_line(location.value, retry_line(previous, result.retried))
                readings_good = False
                continue
            if not result.valid:
                result.dew_point = previous.dew_point
                readings_good = False
            self.readings[location] = result
            self.display.show_line(location.value, reading_line(result))
        return readings_good

    def _read_fan_status(self) -> bool:
        try:
            return self.switch.is_fan_running()
        except (RuntimeError, OSError) as e:
            logger.error(f"Fan status: failed to read GPIO {self.switch.pin}: {e}")
            return self.state.fan_running

    def run_cycle(self) -> CycleOutcome:
        now = self._clock()
        self._read_sensors()
        inside = self.readings[Location.INSIDE]
        outside = self.readings[Location.OUTSIDE]

        outcome = self.engine.evaluate(inside, outside)
        if outcome is CycleOutcome.ACCEPTED:
            self.venting = "on" if self.engine.desired else "off"
            self.display.show_line(2, dew_point_line(inside, outside, self.engine.desired))
            self.telemetry.publish(now, {}, cycle_fields(inside, outside, self.engine.desired))

        command = self.arbiter.arbitrate(self.state, self.engine.desired)
        self.actuator.apply(command)

        self.is_alive = not self.is_alive
        fan_running = self._read_fan_status()
        fan_is = "ON " if fan_running else "OFF"
        self.display.show_line(3, status_line(self.ip_address, self.is_alive, self.state.remote_override, fan_is))
        self.arbiter.observe(self.state, fan_running)
        logger.info(f"Fan is {self.venting} - {fan_is}")

        self.update = now.strftime(DATE_TIME_FORMAT)
        self.board.publish(self.snapshot())
        return outcome

    def snapshot(self) -> StatusSnapshot:
        return StatusSnapshot(
            update=self.update,
            inside=replace(self.readings[Location.INSIDE]),
            outside=replace(self.readings[Location.OUTSIDE]),
            venting=self.state.command,
            fan_running=self.state.fan_running,
            override_active=self.state.manual_override_active,
            remote_override=self.state.remote_override,
            thresholds=self.engine.thresholds,
        )

    def run(self, stop: Optional[threading.Event] = None):
        """Loop until `stop` is set. The current cycle always completes."""
        stop = stop or threading.Event()
        logger.info("Controller: starting main loop")
        while not stop.is_set():
            self.run_cycle()
            stop.wait(self.period_s)
        logger.info("Controller: main loop stopped")

    def shutdown(self):
        """Release the relay and close the display."""
        self.actuator.release()
        self.display.close()
