"""
Month grid layout and the "does this course happen on this day" policy.

occurs_on() is the only place that decides whether a course takes place on a
date; the month view and the exclusion checks both go through it.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from .model import WEEKDAY_INDEX, Course, Occurrence
from .timefmt import parse_time24

GRID_ROWS = 6


# ──────────────────────────────────────────────────────────────────
#  Month grid
# ──────────────────────────────────────────────────────────────────

def month_matrix(year: int, month: int) -> List[List[Optional[date]]]:
    """
    Lay out a month as Sunday-first weeks of 7 cells.

    Cells outside the month are None. The result is padded with empty weeks
    up to 6 rows so every month renders at the same height.
    """
    monday_first, total_days = calendar.monthrange(year, month)
    first_column = (monday_first + 1) % 7  # 0=Sunday .. 6=Saturday

    matrix: List[List[Optional[date]]] = []
    week: List[Optional[date]] = [None] * first_column

    for day in range(1, total_days + 1):
        if len(week) == 7:
            matrix.append(week)
            week = []
        week.append(date(year, month, day))

    if week:
        week.extend([None] * (7 - len(week)))
        matrix.append(week)

    while len(matrix) < GRID_ROWS:
        matrix.append([None] * 7)
    return matrix


# ──────────────────────────────────────────────────────────────────
#  Occurrences
# ──────────────────────────────────────────────────────────────────

def first_occurrence_date(start: date, weekday_name: str) -> date:
    """Smallest date on or after ``start`` that falls on ``weekday_name``."""
    offset = (WEEKDAY_INDEX[weekday_name] - start.weekday()) % 7
    return start + timedelta(days=offset)


def occurs_on(course: Course, day: date) -> bool:
    if isinstance(day, datetime):
        day = day.date()
    if day < course.start_date or day > course.end_date:
        return False
    if day in course.excluded_dates:
        return False
    return day.weekday() == WEEKDAY_INDEX.get(course.weekday)


def courses_on(courses: Iterable[Course], day: date) -> List[Course]:
    """Courses that take place on ``day``, in collection order."""
    return [c for c in courses if occurs_on(c, day)]


def occurrences(
    course: Course,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Iterator[Occurrence]:
    """
    Yield the concrete occurrences of a course, optionally clipped to
    [start, end]. Excluded dates are skipped.
    """
    lo = course.start_date if start is None else max(course.start_date, start)
    hi = course.end_date if end is None else min(course.end_date, end)
    if lo > hi:
        return

    at = parse_time24(course.start_time)
    length = timedelta(hours=course.duration)
    day = first_occurrence_date(lo, course.weekday)
    while day <= hi:
        if occurs_on(course, day):
            begin = datetime.combine(day, at)
            yield Occurrence(course.id, day, begin, begin + length)
        day += timedelta(days=7)
