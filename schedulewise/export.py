"""
Export courses to one iCalendar (.ics) payload, one weekly VEVENT per course.

DTSTART and EXDATE are written as floating local time. RRULE UNTIL is the
course end date at 23:59:59 local, converted to UTC as RFC 5545 requires.
"""
from __future__ import annotations

import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

import icalendar
import pytz

from .calendar_grid import first_occurrence_date
from .errors import EmptyCollection, FormatError, NoExportableEvents
from .model import WEEKDAY_ICS_CODES, Course
from .timefmt import parse_time24

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "ScheduleWise_Courses.ics"
MIME_TYPE = "text/calendar"
CALENDAR_NAME = "ScheduleWise Calendar"
REMINDER_BEFORE = timedelta(minutes=10)

_END_OF_DAY = time(23, 59, 59)


@dataclass
class ExportResult:
    payload: bytes
    exported: int
    skipped: List[str] = field(default_factory=list)
    filename: str = EXPORT_FILENAME
    mime_type: str = MIME_TYPE

    def summary(self) -> str:
        text = f"Exported {self.exported} course(s) to {self.filename}."
        if self.skipped:
            text += f" {len(self.skipped)} course(s) skipped, see log for details."
        return text


def _until_utc(end_date: date, tz_name: Optional[str]) -> datetime:
    """End of the last day in local wall-clock time, as a UTC instant."""
    local_end = datetime.combine(end_date, _END_OF_DAY)
    if tz_name is None:
        # naive -> host local zone
        return local_end.astimezone(timezone.utc)
    try:
        zone = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e
    return zone.localize(local_end).astimezone(timezone.utc)


def _split_duration(hours: float) -> tuple[int, int]:
    whole = math.floor(hours)
    return whole, round((hours - whole) * 60)


def first_occurrence(course: Course) -> datetime:
    """Local start datetime of the earliest weekly occurrence."""
    day = first_occurrence_date(course.start_date, course.weekday)
    return datetime.combine(day, parse_time24(course.start_time))


def build_event(course: Course, index: int, tz_name: Optional[str] = None) -> Optional[icalendar.Event]:
    """
    Build the VEVENT for one course. Returns None when the date range holds
    no occurrence of the course's weekday.
    """
    code = WEEKDAY_ICS_CODES.get(course.weekday)
    if code is None:
        raise FormatError(f"Invalid weekday {course.weekday!r}")
    hours = course.duration
    if not isinstance(hours, (int, float)) or not (math.isfinite(hours) and hours > 0):
        raise FormatError(f"Invalid duration {course.duration!r}")

    at = parse_time24(course.start_time)
    start = first_occurrence(course)
    range_start = datetime.combine(course.start_date, at)
    range_end = datetime.combine(course.end_date, _END_OF_DAY)
    if start > range_end:
        return None

    hours, minutes = _split_duration(course.duration)

    event = icalendar.Event()
    event.add("uid", f"schedulewise-{course.id}-{index}@schedulewise")
    event.add("dtstamp", datetime.now(timezone.utc))
    event.add("summary", course.title)
    event.add("dtstart", start)
    event.add("duration", timedelta(hours=hours, minutes=minutes))
    event.add(
        "rrule",
        {
            "freq": "weekly",
            "byday": code,
            "interval": 1,
            "until": _until_utc(course.end_date, tz_name),
        },
    )
    if course.location:
        event.add("location", course.location)
    if course.description:
        event.add("description", f"Lecturer: {course.description}")

    exdates = [datetime.combine(d, at) for d in course.excluded_dates]
    exdates = [dt for dt in exdates if range_start <= dt <= range_end]
    if exdates:
        event.add("exdate", exdates)

    alarm = icalendar.Alarm()
    alarm.add("action", "DISPLAY")
    alarm.add("description", "Reminder")
    alarm.add("trigger", -REMINDER_BEFORE)
    event.add_component(alarm)
    return event


def build_calendar(courses: Sequence[Course], tz_name: Optional[str] = None) -> ExportResult:
    """
    Encode all courses into one calendar.

    A course that cannot be encoded is logged and skipped; the rest are still
    exported. Raises EmptyCollection for no input and NoExportableEvents when
    nothing could be encoded.
    """
    if not courses:
        raise EmptyCollection("No courses to export.")

    cal = icalendar.Calendar()
    cal.add("prodid", "-//ScheduleWise//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", CALENDAR_NAME)

    skipped: List[str] = []
    count = 0
    for index, course in enumerate(courses):
        try:
            event = build_event(course, index, tz_name)
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            msg = f"Error processing course {course.title!r} for ICS: {e}"
            logger.warning(msg)
            skipped.append(msg)
            continue
        if event is None:
            msg = f"Skipping course {course.title!r} as its first occurrence is after its end date."
            logger.warning(msg)
            skipped.append(msg)
            continue
        cal.add_component(event)
        count += 1

    if not count:
        logger.warning("No valid events generated for ICS.")
        raise NoExportableEvents("No valid events could be generated for export.")

    logger.debug("Encoded %d event(s), skipped %d", count, len(skipped))
    return ExportResult(payload=cal.to_ical(), exported=count, skipped=skipped)


def write_export(result: ExportResult, out_dir: str | Path) -> Path:
    """Write the payload in a single atomic replace. Returns the file path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / result.filename

    fd, tmp_name = tempfile.mkstemp(dir=out_dir, prefix=".schedulewise-", suffix=".ics")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(result.payload)
        os.replace(tmp_name, out_path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Wrote %d bytes to %s", len(result.payload), out_path)
    return out_path
