from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Venting thresholds
DIFF_MIN = 3.0           # minimal dew point difference
HYSTERESIS = 1.0         # difference between switching on/off
HUM_INSIDE_MIN = 50.0    # minimal inside humidity to allow venting
TEMP_INSIDE_MIN = 10.0   # minimal inside temperature to allow venting
TEMP_OUTSIDE_MIN = -10.0 # minimal outside temperature to allow venting
MAX_DEW_POINT_JUMP = 1.0 # max plausible dew point change between two cycles
SPIKE_RESET_CYCLES = 4   # consecutive rejected cycles before the baseline is replaced

# Sentinels for "no value yet"
DEF_TEMP = -200.0
DEF_HUM = -1.0

# Accepted physical range of the sensors (°C)
TEMP_PLAUSIBLE_MIN = -20.0
TEMP_PLAUSIBLE_MAX = 40.0

# Each sensor is different, find your own correction values!
# Index 0 = inside, index 1 = outside
TEMP_CORRECTIONS = (-4.0, 0.0)
HUM_CORRECTIONS = (10.0, -6.0)

# GPIO wiring (BCM numbering)
SENSOR_PINS = (24, 23)   # DHT data pins, inside / outside
FAN_PIN = 25             # relay output, active low
FAN_STATUS_PIN = 22      # 3 state switch feedback, low = fan running

SENSOR_RETRIES = 15
SENSOR_RETRY_DELAY_S = 1.0
CYCLE_PERIOD_S = 15.0

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# LCD (HD44780 20x4 behind a PCF8574 I2C backpack)
LCD_I2C_BUS = 1
LCD_I2C_ADDRESS = 0x27
LCD_COLUMNS = 20
LCD_ROWS = 4


class Settings(BaseSettings):
    """Runtime settings, taken from the environment and optionally the command line."""

    model_config = SettingsConfigDict(
        cli_prog_name="dew_point_fan",
        extra="ignore",
    )

    lcd_delay: int = 3          # initial delay for LCD in s (1s...10s)
    scroll_speed: int = 500     # scroll speed in ms (100ms...10000ms)
    influx_srv_url: str = ""
    influx_dp_token: str = ""
    influx_org: str = "privat"
    influx_bucket: str = "dew-point"
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    home_dir: Path = Path.home() / ".dew_point_fan"
    log_level: str = "INFO"
    sensor_type: Literal["dht22", "dht11"] = "dht22"

    @field_validator("lcd_delay")
    @classmethod
    def _clamp_lcd_delay(cls, value: int) -> int:
        return min(max(value, 1), 10)

    @field_validator("scroll_speed")
    @classmethod
    def _clamp_scroll_speed(cls, value: int) -> int:
        return min(max(value, 100), 10000)

    @property
    def log_dir(self) -> Path:
        return self.home_dir / "log"
