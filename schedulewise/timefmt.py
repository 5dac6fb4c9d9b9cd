"""
Convert between 12-hour input ('9:30' + 'AM') and 24-hour storage ('09:30').
"""
from __future__ import annotations

import logging
import re
from datetime import time

from .errors import FormatError, InvalidTimeFormat, InvalidTimeValue
from .model import MERIDIEMS

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"([0-9]{1,2}):([0-9]{2})")

FALLBACK_12H = ("12:00", "AM")


def to_24_hour(time12: str, meridiem: str) -> str:
    """
    Convert '9:30' / 'PM' to '21:30'.

    Raises InvalidTimeFormat when the text is not H:MM or HH:MM, and
    InvalidTimeValue when hour is outside 1-12 or minute outside 0-59.
    """
    m = _TIME_RE.fullmatch(time12 or "")
    if not m:
        raise InvalidTimeFormat(
            "Invalid time format. Expected HH:MM or H:MM.", field="start_time"
        )
    hour, minute = int(m.group(1)), int(m.group(2))
    if not (1 <= hour <= 12) or not (0 <= minute <= 59):
        raise InvalidTimeValue(
            "Invalid time values. Hours must be 1-12, minutes 0-59.", field="start_time"
        )
    if meridiem not in MERIDIEMS:
        raise InvalidTimeValue(f"Invalid AM/PM value {meridiem!r}.", field="meridiem")

    if meridiem == "PM" and hour < 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        # midnight
        hour = 0
    return f"{hour:02d}:{minute:02d}"


def to_12_hour(time24: str) -> tuple[str, str]:
    """
    Convert '21:30' to ('9:30', 'PM').

    Malformed or out-of-range input never raises: it yields ('12:00', 'AM')
    so that a broken stored value can still be opened for editing.
    """
    m = _TIME_RE.fullmatch(time24 or "") if isinstance(time24, str) else None
    if not m:
        logger.warning("Invalid 24-hour time format for conversion: %r", time24)
        return FALLBACK_12H
    hour, minute = int(m.group(1)), int(m.group(2))
    if not (0 <= hour <= 23) or not (0 <= minute <= 59):
        logger.warning("Invalid 24-hour time values for conversion: %r", time24)
        return FALLBACK_12H

    meridiem = "PM" if hour >= 12 else "AM"
    if hour == 0:
        hour12 = 12
    elif hour > 12:
        hour12 = hour - 12
    else:
        hour12 = hour
    return f"{hour12}:{minute:02d}", meridiem


def parse_time24(time24: str) -> time:
    """Parse a stored 'HH:MM' value. Raises FormatError when it is unusable."""
    m = _TIME_RE.fullmatch(time24) if isinstance(time24, str) else None
    if not m:
        raise FormatError(f"Invalid stored start time {time24!r}")
    try:
        return time(int(m.group(1)), int(m.group(2)))
    except ValueError as e:
        raise FormatError(f"Invalid stored start time {time24!r}: {e}") from e


def format_for_display(time24: str) -> str:
    """'09:05' -> '09:05 AM', '13:30' -> '01:30 PM'. Falls back to the input."""
    try:
        time12, meridiem = to_12_hour(time24)
        hour, minute = time12.split(":")
        return f"{hour.zfill(2)}:{minute} {meridiem}"
    except (AttributeError, ValueError):
        logger.exception("Error formatting time for display: %r", time24)
        return time24
