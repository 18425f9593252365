import signal
import sys
import threading

import adafruit_dht
import board
import dht11
import RPi.GPIO as GPIO
from smbus2 import SMBus

from dew_point_fan.actuator import ActuatorDriver, GPIOController, ManualSwitch
from dew_point_fan.config import SENSOR_PINS, Settings
from dew_point_fan.controller import DewPointFanController
from dew_point_fan.corrector import ValueCorrector
from dew_point_fan.display import open_display
from dew_point_fan.engine import VentingDecisionEngine
from dew_point_fan.logs import setup_logging
from dew_point_fan.models import CalibrationOffsets, Location, Thresholds
from dew_point_fan.network import find_ip_address
from dew_point_fan.override import OverrideArbiter, OverrideSource
from dew_point_fan.sensors import CircuitPythonDHT, SensorChannel, SensorReader
from dew_point_fan.status import StatusBoard, StatusServer, create_app
from dew_point_fan.telemetry import create_telemetry


def open_sensor(sensor_type: str, pin: int):
    """DHT driver for a BCM pin number. DHT22 parts go through adafruit_dht."""
    if sensor_type == "dht11":
        return dht11.DHT11(pin=pin)
    return CircuitPythonDHT(adafruit_dht.DHT22(getattr(board, f"D{pin}")))


def main(argv=None) -> int:
    settings = Settings(_cli_parse_args=sys.argv[1:] if argv is None else argv)
    logger = setup_logging(settings.log_dir, settings.log_level)
    logger.info("Starting Dew Point Fan...")

    stop = threading.Event()

    def _stop(signum, frame):
        logger.info(f"Signal {signum} received... Exiting")
        stop.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    display = open_display(SMBus, settings.scroll_speed, settings.lcd_delay)
    ip_address = find_ip_address()
    logger.info(f"IP address: {ip_address}")

    try:
        gpio = GPIOController(GPIO)
        actuator = ActuatorDriver(gpio)
        switch = ManualSwitch(gpio)
    except (RuntimeError, OSError) as e:
        logger.error(f"Failed to set up GPIO: {e}")
        display.close()
        return 1

    thresholds = Thresholds()
    channels = {
        location: SensorChannel(open_sensor(settings.sensor_type, pin), name=location.short)
        for location, pin in zip(Location, SENSOR_PINS)
    }
    reader = SensorReader(channels, ValueCorrector(CalibrationOffsets()), thresholds)
    overrides = OverrideSource()
    status_board = StatusBoard()
    telemetry = create_telemetry(
        settings.influx_srv_url, settings.influx_dp_token, settings.influx_org, settings.influx_bucket
    )

    controller = DewPointFanController(
        reader=reader,
        engine=VentingDecisionEngine(thresholds),
        arbiter=OverrideArbiter(overrides),
        actuator=actuator,
        switch=switch,
        display=display,
        telemetry=telemetry,
        board=status_board,
        ip_address=ip_address,
    )
    server = StatusServer(create_app(status_board, overrides), settings.http_host, settings.http_port)

    try:
        controller.show_startup()
        server.start()
        controller.run(stop)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
    finally:
        # Always cleanup
        server.stop()
        controller.shutdown()
        for channel in channels.values():
            channel.close()
        gpio.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())
