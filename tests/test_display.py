from itertools import islice

from dew_point_fan.display import (
    LcdDisplay,
    LogDisplay,
    dew_point_line,
    fit_line,
    open_display,
    reading_line,
    retry_line,
    scroll_frames,
    status_line,
)
from dew_point_fan.models import Location, RemoteOverride, SensorReading


class FakeBus:
    def __init__(self, number, fail_writes=0):
        self.number = number
        self.writes = []
        self.closed = False
        self.fail_writes = fail_writes

    def write_byte(self, address, value):
        if self.fail_writes:
            self.fail_writes -= 1
            raise OSError("Remote I/O error")
        self.writes.append((address, value))

    def close(self):
        self.closed = True


class BusFactory:
    def __init__(self):
        self.buses = []

    def __call__(self, number):
        bus = FakeBus(number)
        self.buses.append(bus)
        return bus


def make_lcd(factory, **kwargs):
    return LcdDisplay(factory, init_delay_s=0, sleep=lambda s: None, **kwargs)


class TestFormatting:
    def test_fit_line_pads(self):
        assert fit_line("abc", 5) == "abc  "

    def test_fit_line_truncates(self):
        assert fit_line("abcdefgh", 5) == "abcde"

    def test_scroll_frames_rotate_with_padding(self):
        frames = list(islice(scroll_frames("abc"), 3))
        assert frames == ["abc     ", "bc     a", "c     ab"]

    def test_reading_line(self):
        reading = SensorReading(Location.INSIDE, 22.0, 55.0, dew_point=12.5, valid=True)
        assert reading_line(reading) == "I-T: 22.0C H: 55.0%"
        assert len(reading_line(reading)) <= 20

    def test_retry_line(self):
        assert retry_line(SensorReading(Location.OUTSIDE), 15) == "O: retried 15"

    def test_dew_point_line(self):
        inside = SensorReading(Location.INSIDE, dew_point=12.5)
        outside = SensorReading(Location.OUTSIDE, dew_point=1.8)
        assert dew_point_line(inside, outside, True) == "DP: 12.5C   1.8C on"

    def test_status_line_short_ip(self):
        line = status_line("192.168.1.5", True, RemoteOverride.FORCE_ON, "ON ")
        assert line == "192.168.1.5 * 1  ON "
        assert len(line) == 20

    def test_status_line_long_ip_drops_override_digit(self):
        line = status_line("192.168.100.15", False, RemoteOverride.FORCE_ON, "OFF")
        assert line == "192.168.100.15   OFF"

    def test_status_line_very_long_ip(self):
        assert status_line("192.168.100.155", True, RemoteOverride.NONE, "OFF") == "192.168.100.155* OFF"

    def test_status_line_no_ip(self):
        assert status_line("", False, RemoteOverride.NONE, "OFF").startswith("   0 ")


class TestLogDisplay:
    def test_keeps_trimmed_lines(self):
        display = LogDisplay()
        display.show_line(1, "  hello  ")
        assert display.lines[1] == "hello"

    def test_out_of_range_row_is_ignored(self):
        display = LogDisplay()
        display.show_line(4, "nope")
        assert display.lines == ["", "", "", ""]


class TestLcdDisplay:
    def test_prints_text(self):
        factory = BusFactory()
        lcd = make_lcd(factory)
        lcd.show_line(0, "H")
        lcd.close()
        values = [value for _, value in factory.buses[0].writes]
        # 'H' = 0x48: high nibble with RS, EN and backlight, then low nibble
        assert 0x4D in values
        assert 0x8D in values
        assert factory.buses[0].closed

    def test_uses_configured_address(self):
        factory = BusFactory()
        lcd = make_lcd(factory, address=0x3F)
        lcd.close()
        assert {address for address, _ in factory.buses[0].writes} == {0x3F}

    def test_write_error_reopens_device(self):
        factory = BusFactory()
        lcd = make_lcd(factory)
        factory.buses[0].fail_writes = 1
        lcd.show_line(2, "x")
        lcd.close()
        assert lcd.retry_count == 1
        assert len(factory.buses) == 2

    def test_scrolling_line_gets_a_ticker(self):
        factory = BusFactory()
        lcd = make_lcd(factory, scroll_speed_ms=10000)
        lcd.show_line(1, "x" * 30, scroll=True)
        assert 1 in lcd._tickers
        lcd.show_line(1, "short")
        assert 1 not in lcd._tickers
        lcd.close()

    def test_short_line_does_not_scroll(self):
        factory = BusFactory()
        lcd = make_lcd(factory)
        lcd.show_line(1, "short", scroll=True)
        assert 1 not in lcd._tickers
        lcd.close()


class TestOpenDisplay:
    def test_without_bus_uses_log_display(self):
        assert isinstance(open_display(None, 500, 3), LogDisplay)

    def test_lcd_missing_falls_back(self):
        def factory(number):
            raise OSError("No such device")

        assert isinstance(open_display(factory, 500, 3), LogDisplay)

    def test_silent_lcd_closes_bus_and_falls_back(self):
        buses = []

        def factory(number):
            bus = FakeBus(number, fail_writes=1000)
            buses.append(bus)
            return bus

        assert isinstance(open_display(factory, 500, 3), LogDisplay)
        assert len(buses) == 1
        assert buses[0].closed
