"""
Parse the plain-text course list into Course records.

File layout (blank lines are ignored):

    1/9/2025 - 20/12/2025        optional global date range, D/M/YYYY
    Algorithms                   title
    Mon                          weekday, 3-letter
    9.30                         start time, H / HH / H.MM / HH.MM
    AM                           AM or PM
    1.5                          duration in hours
    Room 1                       location
    Dr. X                        lecturer

Every course takes exactly 7 lines. A bad block is reported and skipped, the
rest of the file is still imported.
"""
from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ValidationError
from .model import MERIDIEMS, SHORT_WEEKDAYS, Course, format_date, new_course_id
from .timefmt import to_24_hour

logger = logging.getLogger(__name__)

LINES_PER_BLOCK = 7

_DATE_RANGE_RE = re.compile(r"^([0-9]{1,2}/[0-9]{1,2}/[0-9]{4})\s*-\s*([0-9]{1,2}/[0-9]{1,2}/[0-9]{4})$")
_START_TIME_RE = re.compile(r"^([0-9]+)(?:\.([0-9]*))?$")


class ImportOutcome(enum.Enum):
    ALL_IMPORTED = "all_imported"
    PARTIAL = "partial"
    ALL_FAILED = "all_failed"
    NO_DATA = "no_data"


@dataclass
class ImportResult:
    courses: List[Course] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    date_range_note: str = ""

    @property
    def outcome(self) -> ImportOutcome:
        if self.courses:
            return ImportOutcome.PARTIAL if self.errors else ImportOutcome.ALL_IMPORTED
        if self.errors:
            return ImportOutcome.ALL_FAILED
        return ImportOutcome.NO_DATA

    def summary(self) -> Tuple[str, str]:
        """(title, description) for the one-line notification shown to the user."""
        outcome = self.outcome
        issues = f"{len(self.errors)} issue(s) found during import. Check the log for details."
        if outcome is ImportOutcome.ALL_IMPORTED:
            return "Import Processed", f"{len(self.courses)} course(s) imported. {self.date_range_note}"
        if outcome is ImportOutcome.PARTIAL:
            return (
                "Import Processed",
                f"{len(self.courses)} course(s) imported. {self.date_range_note} {issues}",
            )
        if outcome is ImportOutcome.ALL_FAILED:
            return "Import Failed", f"No courses imported due to errors. {self.date_range_note} {issues}"
        return (
            "Import Information",
            f"No course data found in the TXT file (after processing optional date range line). "
            f"{self.date_range_note}",
        )


def _parse_dmy(text: str) -> Optional[date]:
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        return None


def _read_date_range(first_line: str, today: date) -> Tuple[bool, date, date, str]:
    """
    Inspect the first line. Returns (consumed, start, end, note).

    A line that looks like a date range is always consumed, even when the
    dates themselves are unusable.
    """
    m = _DATE_RANGE_RE.match(first_line.strip())
    if not m:
        return False, today, today, "Courses defaulted to current date (no valid global date range found in TXT)."

    start, end = _parse_dmy(m.group(1)), _parse_dmy(m.group(2))
    if start is None or end is None:
        return True, today, today, (
            "Invalid date format in global date range line in TXT. Courses defaulted to current date."
        )
    if end < start:
        return True, today, today, (
            "Global end date in TXT was before start date. Courses defaulted to current date."
        )
    return True, start, end, f"Global date range {format_date(start)} - {format_date(end)} applied from TXT."


def _parse_start_time(raw: str) -> str:
    """'9.5' -> '9:50', '10' -> '10:00'. Raises ValueError on bad input."""
    m = _START_TIME_RE.match(raw)
    if not m:
        raise ValueError("Hour part missing or not a number.")
    hour_part, minute_part = m.group(1), m.group(2) or ""
    minute_part = minute_part.ljust(2, "0")[:2] if minute_part else "00"
    hour, minute = int(hour_part), int(minute_part)
    if not (1 <= hour <= 12) or not (0 <= minute <= 59):
        raise ValueError("Invalid hour or minute value for 12-hour format.")
    return f"{hour}:{minute_part}"


def _parse_duration(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _parse_block(
    block: List[str], index: int, start: date, end: date
) -> Tuple[Optional[Course], List[str]]:
    raw_title, raw_weekday, raw_time, raw_meridiem, raw_duration, raw_location, raw_lecturer = block
    errors: List[str] = []
    label = f"Course block {index} ('{raw_title or 'Untitled'}')"

    if not raw_title:
        errors.append(f"Course block {index}: Title is missing. Skipped.")
        return None, errors

    weekday_key = raw_weekday[:1].upper() + raw_weekday[1:].lower()
    weekday = SHORT_WEEKDAYS.get(weekday_key)
    if weekday is None:
        errors.append(f'{label}: Invalid weekday "{raw_weekday}". Expected Mon, Tue, etc. Skipped.')
        return None, errors

    try:
        time12 = _parse_start_time(raw_time)
    except ValueError as e:
        errors.append(
            f'{label}: Invalid start time format "{raw_time}". '
            f"Expected H.MM, HH.MM, H, or HH. Skipped. {e}"
        )
        return None, errors

    meridiem = raw_meridiem.upper()
    if meridiem not in MERIDIEMS:
        errors.append(f'{label}: Invalid AM/PM value "{raw_meridiem}". Expected AM or PM. Skipped.')
        return None, errors

    try:
        start_time = to_24_hour(time12, meridiem)
    except ValidationError as e:
        errors.append(
            f'{label}: Error converting time "{time12} {meridiem}" to 24-hour format. Skipped. {e}'
        )
        return None, errors

    duration = _parse_duration(raw_duration)
    if duration is None:
        errors.append(f'{label}: Invalid duration "{raw_duration}". Must be a positive number. Skipped.')
        return None, errors

    course = Course(
        id=new_course_id(),
        title=raw_title,
        weekday=weekday,
        start_date=start,
        end_date=end,
        start_time=start_time,
        duration=duration,
        location=raw_location or "N/A",
        description=raw_lecturer or "",
        excluded_dates=(),
    )
    return course, errors


def parse_import_text(text: str, today: Optional[date] = None) -> ImportResult:
    """
    Parse the whole file content. Never raises for malformed content; every
    problem ends up in ``ImportResult.errors``.
    """
    today = today or date.today()
    all_lines = (text or "").split("\n")

    consumed, start, end, note = _read_date_range(all_lines[0], today)
    offset = 1 if consumed else 0
    if not text:
        note = "File is empty. No courses imported."

    lines = [line.strip() for line in all_lines[offset:]]
    lines = [line for line in lines if line]

    result = ImportResult(date_range_note=note)
    for i in range(0, len(lines), LINES_PER_BLOCK):
        block = lines[i:i + LINES_PER_BLOCK]
        index = i // LINES_PER_BLOCK + 1
        if len(block) < LINES_PER_BLOCK:
            result.errors.append(
                f"Course block {index} (approx. original line {offset + i + 1}): Incomplete block "
                f"(expected {LINES_PER_BLOCK} lines, got {len(block)}). Skipped."
            )
            continue

        course, errors = _parse_block(block, index, start, end)
        result.errors.extend(errors)
        if course is not None:
            result.courses.append(course)

    for err in result.errors:
        logger.warning(err)
    logger.info(
        "TXT import: %d course(s) parsed, %d issue(s)", len(result.courses), len(result.errors)
    )
    return result


def read_import_file(path: str | Path) -> str:
    """Read the whole import file before parsing. ``utf-8-sig`` drops a BOM."""
    return Path(path).read_text(encoding="utf-8-sig")
