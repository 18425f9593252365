"""
Status display: a 20x4 HD44780 character LCD behind a PCF8574 I2C backpack.

All I2C traffic happens on one worker thread fed through a queue. Lines longer
than the display width can scroll; each scrolling line has its own ticker
thread that pushes the rotated text into the same queue.
"""
import logging
import queue
import threading
import time
from typing import Callable, Dict, List, Optional

from dew_point_fan.config import LCD_COLUMNS, LCD_I2C_ADDRESS, LCD_I2C_BUS, LCD_ROWS
from dew_point_fan.models import RemoteOverride, SensorReading

logger = logging.getLogger(__name__)

SCROLL_PADDING = "     "


class DisplaySink:
    """Interface the control loop writes to."""

    rows = LCD_ROWS
    columns = LCD_COLUMNS

    def show_line(self, row: int, text: str, scroll: bool = False) -> None:
        raise NotImplementedError

    def backlight(self, on: bool) -> None:
        pass

    def clear(self) -> None:
        pass

    def close(self) -> None:
        pass


class LogDisplay(DisplaySink):
    """Used when no LCD is attached: keeps the lines and logs them."""

    def __init__(self):
        self.lines: List[str] = [""] * self.rows

    def show_line(self, row: int, text: str, scroll: bool = False) -> None:
        if not 0 <= row < self.rows:
            logger.error(f"Display row is out of bounds: {row}")
            return
        text = text.strip()
        if self.lines[row] != text:
            logger.debug(f"Display [{row}] {text}")
        self.lines[row] = text

    def clear(self) -> None:
        self.lines = [""] * self.rows


def fit_line(text: str, columns: int = LCD_COLUMNS) -> str:
    """Truncate or blank-pad text to exactly `columns` characters."""
    return text[:columns].ljust(columns)


def scroll_frames(text: str):
    """Endless sequence of the text rotated left by one character per frame."""
    s = text + SCROLL_PADDING
    while True:
        yield s
        s = s[1:] + s[:1]


# HD44780 commands
LCD_CLEAR = 0x01
LCD_ENTRY_MODE = 0x06      # increment, no shift
LCD_DISPLAY_ON = 0x0C      # display on, cursor off
LCD_DISPLAY_OFF = 0x08
LCD_FUNCTION_SET = 0x28    # 4 bit, 2 line, 5x8 font
LCD_SET_DDRAM = 0x80
ROW_OFFSETS = (0x00, 0x40, 0x14, 0x54)

# PCF8574 bits
_RS = 0x01
_EN = 0x04
_BACKLIGHT = 0x08

_CMD_CLEAR = "clear"
_CMD_BACKLIGHT = "backlight"
_CMD_PRINT = "print"
_CMD_STOP = "stop"


class LcdDisplay(DisplaySink):
    def __init__(
        self,
        bus_factory: Callable[[int], object],
        scroll_speed_ms: int = 500,
        init_delay_s: int = 3,
        bus_number: int = LCD_I2C_BUS,
        address: int = LCD_I2C_ADDRESS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Open the I2C bus, initialise the LCD and start the worker thread.

        Args:
            bus_factory: callable returning an SMBus-like object for a bus number
                         (smbus2.SMBus on the Pi)
            scroll_speed_ms: delay between two scroll steps
            init_delay_s: settle time after initialising the controller
        Raises:
            OSError: if the LCD does not answer on the bus
        """
        self.bus_factory = bus_factory
        self.bus_number = bus_number
        self.address = address
        self.scroll_speed = scroll_speed_ms / 1000.0
        self.init_delay = init_delay_s
        self.retry_count = 0
        self._sleep = sleep
        self._bus = None
        self._backlight = _BACKLIGHT
        self._queue: "queue.Queue" = queue.Queue()
        self._tickers: Dict[int, threading.Event] = {}
        self._tickers_lock = threading.Lock()

        self._open()
        self._worker = threading.Thread(target=self._command_handler, name="lcd", daemon=True)
        self._worker.start()
        self.clear()
        self.backlight(True)

    # low level, worker thread only

    def _open(self):
        logger.debug("LCD initializing...")
        self._bus = self.bus_factory(self.bus_number)
        try:
            self._init_controller()
        except OSError:
            self._bus.close()
            self._bus = None
            raise
        self._sleep(self.init_delay)

    def _write(self, byte: int):
        if self._bus is None:
            raise OSError("I2C bus not open")
        self._bus.write_byte(self.address, byte | self._backlight)

    def _pulse(self, byte: int):
        self._write(byte | _EN)
        self._sleep(0.0005)
        self._write(byte & ~_EN)
        self._sleep(0.0001)

    def _send(self, value: int, rs: int = 0):
        self._pulse((value & 0xF0) | rs)
        self._pulse(((value << 4) & 0xF0) | rs)

    def _init_controller(self):
        self._sleep(0.05)
        for _ in range(3):
            self._pulse(0x30)
            self._sleep(0.005)
        self._pulse(0x20)
        self._send(LCD_FUNCTION_SET)
        self._send(LCD_DISPLAY_OFF)
        self._send(LCD_CLEAR)
        self._sleep(0.002)
        self._send(LCD_ENTRY_MODE)
        self._send(LCD_DISPLAY_ON)

    def _print_line(self, row: int, text: str):
        self._send(LCD_SET_DDRAM | ROW_OFFSETS[row])
        for char in fit_line(text, self.columns).encode("ascii", "replace"):
            self._send(char, rs=_RS)

    def _retry_device(self):
        logger.info(f"LCD: re-initialising device (retry {self.retry_count})")
        try:
            if self._bus is not None:
                self._bus.close()
        except OSError:
            pass
        try:
            self._open()
            self._send(LCD_CLEAR)
        except OSError as e:
            logger.error(f"LCD: re-initialisation failed: {e}")
        self.retry_count += 1

    def _command_handler(self):
        while True:
            cmd, row, text = self._queue.get()
            if cmd == _CMD_STOP:
                break
            try:
                if cmd == _CMD_CLEAR:
                    self._send(LCD_CLEAR)
                    self._sleep(0.1)
                elif cmd == _CMD_BACKLIGHT:
                    self._write(0)
                elif cmd == _CMD_PRINT:
                    self._print_line(row, text)
            except OSError as e:
                logger.error(f"LCD: {e}")
                self._retry_device()

    # scrolling

    def _stop_ticker(self, row: int):
        with self._tickers_lock:
            stop = self._tickers.pop(row, None)
        if stop is not None:
            stop.set()

    def _run_ticker(self, row: int, text: str, stop: threading.Event):
        for frame in scroll_frames(text):
            if stop.is_set():
                break
            self._queue.put((_CMD_PRINT, row, frame))
            stop.wait(self.scroll_speed)

    # DisplaySink

    def show_line(self, row: int, text: str, scroll: bool = False) -> None:
        if not 0 <= row < self.rows:
            logger.error(f"LCD display row is out of bounds: {row}")
            return
        text = text.strip() or " "
        self._stop_ticker(row)
        if scroll and len(text) > self.columns:
            stop = threading.Event()
            with self._tickers_lock:
                self._tickers[row] = stop
            threading.Thread(
                target=self._run_ticker, args=(row, text, stop), name=f"lcd-scroll-{row}", daemon=True
            ).start()
        else:
            self._queue.put((_CMD_PRINT, row, text))

    def backlight(self, on: bool) -> None:
        self._backlight = _BACKLIGHT if on else 0
        self._queue.put((_CMD_BACKLIGHT, 0, ""))

    def clear(self) -> None:
        self._queue.put((_CMD_CLEAR, 0, ""))

    def close(self) -> None:
        with self._tickers_lock:
            rows = list(self._tickers)
        for row in rows:
            self._stop_ticker(row)
        self._queue.put((_CMD_STOP, 0, ""))
        self._worker.join(timeout=2.0)
        if self._bus is not None:
            self._bus.close()
        logger.info("LCD: closed")


def reading_line(reading: SensorReading) -> str:
    return f"{reading.location.short}-T:{reading.temperature:5.1f}C H:{reading.humidity:5.1f}%"


def retry_line(reading: SensorReading, retried: int) -> str:
    return f"{reading.location.short}: retried {retried}"


def dew_point_line(inside: SensorReading, outside: SensorReading, venting: bool) -> str:
    return f"DP:{inside.dew_point:5.1f}C {outside.dew_point:5.1f}C {'on' if venting else 'off'}"


def status_line(ip_address: str, alive: bool, remote: RemoteOverride, fan_is: str) -> str:
    """
    Bottom row: IP address, alive marker, remote override and fan feedback,
    squeezed into 20 characters when the IP address is long.
    """
    ofs = 17 - len(ip_address)
    spacer = " " * max(ofs, 0)
    if ofs > 0:
        marker = "*" if alive else " "
        if ofs > 4:
            spacer = f" {marker} {int(remote)} " + " " * (ofs - 5)
        elif ofs > 2:
            spacer = f" {marker} " + " " * (ofs - 3)
        else:
            spacer = marker + " " * (ofs - 1)
    return ip_address + spacer + fan_is


def open_display(bus_factory: Optional[Callable[[int], object]], scroll_speed_ms: int, init_delay_s: int) -> DisplaySink:
    """Return an LcdDisplay, or a LogDisplay if the LCD cannot be opened."""
    if bus_factory is None:
        return LogDisplay()
    try:
        return LcdDisplay(bus_factory, scroll_speed_ms=scroll_speed_ms, init_delay_s=init_delay_s)
    except OSError as e:
        logger.error(f"Couldn't initialize display: {e}")
        return LogDisplay()
