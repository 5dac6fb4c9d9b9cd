"""
Persist the course collection as one JSON blob under a single key.

File layout:

    {"scheduleWiseCourses": [ {"id": ..., "title": ..., ...}, ... ]}

Loading never fails: each field of each stored course is checked on its own
and replaced by a default when missing or of the wrong type. A payload that
cannot be parsed, or whose value is not a list, is discarded entirely.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import math
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from .calendar_grid import occurs_on
from .model import WEEKDAYS, Course, format_date, new_course_id, parse_date

logger = logging.getLogger(__name__)

STORAGE_KEY = "scheduleWiseCourses"


def course_to_dict(course: Course) -> dict[str, Any]:
    return {
        "id": course.id,
        "title": course.title,
        "weekday": course.weekday,
        "startDate": format_date(course.start_date),
        "endDate": format_date(course.end_date),
        "startTime": course.start_time,
        "duration": course.duration,
        "location": course.location,
        "description": course.description,
        "excludedDates": [format_date(d) for d in course.excluded_dates],
    }


def _str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def _date_or_today(value: Any, today: date) -> date:
    if isinstance(value, str):
        try:
            return parse_date(value)
        except ValueError:
            logger.warning("Stored date %r is invalid, using today", value)
    return today


def _excluded_dates(value: Any) -> Tuple[date, ...]:
    if not isinstance(value, list):
        return ()
    out: set[date] = set()
    for item in value:
        if not isinstance(item, str):
            continue
        try:
            out.add(parse_date(item))
        except ValueError:
            logger.warning("Dropping invalid excluded date %r", item)
    return tuple(sorted(out))


def _duration(value: Any) -> float:
    # bool is an int subclass but never a duration
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return 1
    return value


def course_from_dict(raw: dict[str, Any], today: Optional[date] = None) -> Course:
    """Build a Course from stored data, defaulting every bad field independently."""
    today = today or date.today()
    weekday = raw.get("weekday")
    return Course(
        id=_str_or(raw.get("id"), "") or new_course_id(),
        title=_str_or(raw.get("title"), "Untitled Course"),
        weekday=weekday if weekday in WEEKDAYS else WEEKDAYS[0],
        start_date=_date_or_today(raw.get("startDate"), today),
        end_date=_date_or_today(raw.get("endDate"), today),
        start_time=_str_or(raw.get("startTime"), "09:00"),
        duration=_duration(raw.get("duration")),
        location=_str_or(raw.get("location"), ""),
        description=_str_or(raw.get("description"), ""),
        excluded_dates=_excluded_dates(raw.get("excludedDates")),
    )


def load_courses(path: str | Path, today: Optional[date] = None) -> Tuple[Course, ...]:
    """
    Load the stored collection. Returns an empty tuple if the file does not
    exist or its content is unusable.
    """
    store = Path(path)
    if not store.exists():
        return ()

    try:
        data = json.loads(store.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("Failed to parse stored courses in %s: %s", store, e)
        return ()

    items = data.get(STORAGE_KEY) if isinstance(data, dict) else None
    if not isinstance(items, list):
        logger.warning("Stored courses data is invalid (not an array). Resetting.")
        return ()

    courses: List[Course] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Dropping stored course entry that is not an object: %r", item)
            continue
        course = course_from_dict(item, today)
        if course.id in seen:
            fresh = new_course_id()
            logger.warning("Duplicate stored course id %s, reassigned to %s", course.id, fresh)
            course = dataclasses.replace(course, id=fresh)
        seen.add(course.id)
        _warn_broken(course)
        courses.append(course)
    return tuple(courses)


def _warn_broken(course: Course) -> None:
    if course.end_date < course.start_date:
        logger.warning("Stored course %r ends before it starts", course.title)
    bare = dataclasses.replace(course, excluded_dates=())
    stray = [d for d in course.excluded_dates if not occurs_on(bare, d)]
    if stray:
        logger.warning(
            "Stored course %r excludes dates that are not occurrences: %s",
            course.title,
            ", ".join(format_date(d) for d in stray),
        )


def save_courses(courses: Iterable[Course], path: str | Path) -> None:
    """Replace the stored collection in one atomic write."""
    store = Path(path)
    store.parent.mkdir(parents=True, exist_ok=True)
    payload = {STORAGE_KEY: [course_to_dict(c) for c in courses]}
    text = json.dumps(payload, indent=2, ensure_ascii=False)

    fd, tmp_name = tempfile.mkstemp(dir=store.parent, prefix=".schedulewise-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, store)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("Saved %d course(s) to %s", len(payload[STORAGE_KEY]), store)
