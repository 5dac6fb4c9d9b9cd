"""Tests for timefmt.py – 12/24-hour conversion."""
import pytest

from schedulewise.errors import FormatError, InvalidTimeFormat, InvalidTimeValue, ValidationError
from schedulewise.timefmt import format_for_display, parse_time24, to_12_hour, to_24_hour


class TestTo24Hour:
    def test_am(self):
        assert to_24_hour("9:30", "AM") == "09:30"

    def test_pm(self):
        assert to_24_hour("1:05", "PM") == "13:05"

    def test_noon(self):
        assert to_24_hour("12:00", "PM") == "12:00"

    def test_midnight(self):
        assert to_24_hour("12:15", "AM") == "00:15"

    def test_two_digit_hour(self):
        assert to_24_hour("11:59", "PM") == "23:59"

    @pytest.mark.parametrize("text", ["9.30", "930", "", "9:3", "123:00", " 9:30", "\u0669:30"])
    def test_bad_format(self, text):
        with pytest.raises(InvalidTimeFormat):
            to_24_hour(text, "AM")

    @pytest.mark.parametrize("text", ["0:30", "13:00", "9:60"])
    def test_bad_value(self, text):
        with pytest.raises(InvalidTimeValue):
            to_24_hour(text, "AM")

    def test_bad_meridiem(self):
        with pytest.raises(InvalidTimeValue):
            to_24_hour("9:30", "XM")

    def test_errors_are_validation_errors(self):
        with pytest.raises(ValidationError) as ctx:
            to_24_hour("99", "AM")
        assert ctx.value.field == "start_time"


class TestTo12Hour:
    def test_morning(self):
        assert to_12_hour("09:30") == ("9:30", "AM")

    def test_afternoon(self):
        assert to_12_hour("21:05") == ("9:05", "PM")

    def test_midnight(self):
        assert to_12_hour("00:00") == ("12:00", "AM")

    def test_noon(self):
        assert to_12_hour("12:45") == ("12:45", "PM")

    @pytest.mark.parametrize("text", ["garbage", "", "24:00", "10:60", "9.30", None])
    def test_lenient_fallback(self, text):
        assert to_12_hour(text) == ("12:00", "AM")


class TestRoundTrip:
    @pytest.mark.parametrize("meridiem", ["AM", "PM"])
    @pytest.mark.parametrize("hour", range(1, 13))
    @pytest.mark.parametrize("minute", [0, 7, 30, 59])
    def test_round_trip(self, hour, minute, meridiem):
        time12 = f"{hour}:{minute:02d}"
        assert to_12_hour(to_24_hour(time12, meridiem)) == (time12, meridiem)


class TestFormatForDisplay:
    def test_pads_hour(self):
        assert format_for_display("09:05") == "09:05 AM"

    def test_pm(self):
        assert format_for_display("13:30") == "01:30 PM"

    def test_midnight(self):
        assert format_for_display("00:15") == "12:15 AM"

    def test_malformed_uses_fallback(self):
        assert format_for_display("bad") == "12:00 AM"


class TestParseTime24:
    def test_valid(self):
        t = parse_time24("07:45")
        assert (t.hour, t.minute) == (7, 45)

    @pytest.mark.parametrize("text", ["25:00", "ab:cd", "", None, "\u0660\u0669:30"])
    def test_invalid(self, text):
        with pytest.raises(FormatError):
            parse_time24(text)
