"""
Operations on the course collection.

The collection is a tuple of Course records in insertion order. Every
operation returns a new tuple; nothing is changed in place.
"""
from __future__ import annotations

import dataclasses
import logging
import math
import re
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from .calendar_grid import occurs_on
from .errors import CourseNotFound, ValidationError
from .export import ExportResult, build_calendar, write_export
from .model import MERIDIEMS, WEEKDAYS, Course, new_course_id, parse_date
from .timefmt import to_24_hour

logger = logging.getLogger(__name__)

Courses = Tuple[Course, ...]

_FORM_TIME_RE = re.compile(r"(0?[1-9]|1[0-2]):[0-5][0-9]")


def normalize_time_input(text: str) -> str:
    """
    Tidy a typed 12-hour time: '9' -> '09:00', '930' -> '9:30',
    '1130' -> '11:30', '9:5' -> '09:05'. Anything else is returned as-is.
    """
    value = (text or "").strip()
    if value.isdigit():
        if len(value) <= 2:
            return f"{value.zfill(2)}:00"
        if len(value) == 3:
            return f"{value[0]}:{value[1:]}"
        if len(value) == 4:
            return f"{value[:2]}:{value[2:]}"
    elif value.count(":") == 1:
        h, m = (re.sub(r"\D", "", part) for part in value.split(":"))
        if h and m:
            return f"{h.zfill(2)}:{m.zfill(2)}"
    return value


def _as_date(value: date | str, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_date(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be YYYY-MM-DD.", field=field) from e


def course_from_form(
    title: str,
    weekday: str,
    start_date: date | str,
    end_date: date | str,
    start_time: str,
    meridiem: str,
    duration: float | str,
    location: str = "",
    description: str = "",
    course_id: Optional[str] = None,
    excluded_dates: Iterable[date] = (),
) -> Course:
    """
    Validate manually entered fields and build a Course.

    Raises ValidationError on the first bad field. Pass ``course_id`` and the
    old ``excluded_dates`` when editing; exclusions that no longer fall on an
    occurrence of the edited course are dropped.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("Course title is required.", field="title")
    if weekday not in WEEKDAYS:
        raise ValidationError(f"Weekday must be one of {', '.join(WEEKDAYS)}.", field="weekday")

    start = _as_date(start_date, "start_date")
    end = _as_date(end_date, "end_date")
    if end < start:
        raise ValidationError("End date cannot be earlier than start date.", field="end_date")

    time12 = normalize_time_input(start_time)
    if not _FORM_TIME_RE.fullmatch(time12):
        raise ValidationError(
            "Time must be HH:MM or H:MM (e.g., 09:30 or 1:30). Hour must be 01-12.",
            field="start_time",
        )
    meridiem = (meridiem or "").upper()
    if meridiem not in MERIDIEMS:
        raise ValidationError("AM/PM is required.", field="meridiem")

    try:
        hours = float(duration)
    except (TypeError, ValueError):
        hours = math.nan
    if not math.isfinite(hours) or hours <= 0:
        raise ValidationError("Duration must be a positive number.", field="duration")

    course = Course(
        id=course_id or new_course_id(),
        title=title,
        weekday=weekday,
        start_date=start,
        end_date=end,
        start_time=to_24_hour(time12, meridiem),
        duration=hours,
        location=(location or "").strip() or "N/A",
        description=(description or "").strip(),
    )
    kept = tuple(sorted({d for d in excluded_dates if occurs_on(course, d)}))
    return dataclasses.replace(course, excluded_dates=kept)


def find_course(courses: Sequence[Course], course_id: str) -> Course:
    for course in courses:
        if course.id == course_id:
            return course
    raise CourseNotFound(course_id)


def add_course(courses: Sequence[Course], course: Course) -> Courses:
    return add_courses(courses, [course])


def add_courses(courses: Sequence[Course], new: Iterable[Course]) -> Courses:
    """Append courses, skipping any whose id is already present."""
    out = list(courses)
    seen = {c.id for c in out}
    for course in new:
        if course.id in seen:
            logger.warning("Course id %s already present, not added again", course.id)
            continue
        seen.add(course.id)
        out.append(course)
    return tuple(out)


def replace_course(courses: Sequence[Course], course: Course) -> Courses:
    find_course(courses, course.id)
    return tuple(course if c.id == course.id else c for c in courses)


def remove_course(courses: Sequence[Course], course_id: str) -> Courses:
    find_course(courses, course_id)
    return tuple(c for c in courses if c.id != course_id)


def clear_courses(courses: Sequence[Course]) -> Courses:
    logger.info("Clearing %d course(s)", len(courses))
    return ()


def exclude_date(courses: Sequence[Course], course_id: str, day: date) -> Courses:
    """
    Remove a single occurrence of a course. Excluding an already excluded
    date does nothing; a date that is not an occurrence is rejected.
    """
    course = find_course(courses, course_id)
    if day in course.excluded_dates:
        return tuple(courses)
    if not occurs_on(course, day):
        raise ValidationError(
            f"{course.title!r} does not take place on {day.isoformat()}.", field="date"
        )
    updated = dataclasses.replace(
        course, excluded_dates=tuple(sorted({*course.excluded_dates, day}))
    )
    return replace_course(courses, updated)


def export_and_reset(
    courses: Sequence[Course], out_dir: str | Path, tz_name: Optional[str] = None
) -> Tuple[ExportResult, Path, Courses]:
    """
    Export a snapshot of the collection, then hand back an empty collection.

    FatalOperationError (empty input, nothing encodable) propagates before
    anything is written, and the caller's collection stays as it was.
    """
    snapshot = tuple(courses)
    result = build_calendar(snapshot, tz_name)
    path = write_export(result, out_dir)
    logger.info("Export successful, clearing %d course(s)", len(snapshot))
    return result, path, ()
