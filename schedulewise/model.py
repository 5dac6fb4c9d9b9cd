"""
Course record and the weekday / meridiem constants used across the package.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import NamedTuple, Tuple

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Index matches date.weekday(): Monday=0 .. Sunday=6
WEEKDAY_INDEX = {name: i for i, name in enumerate(WEEKDAYS)}

WEEKDAY_ICS_CODES = {
    "Monday": "MO",
    "Tuesday": "TU",
    "Wednesday": "WE",
    "Thursday": "TH",
    "Friday": "FR",
    "Saturday": "SA",
    "Sunday": "SU",
}

SHORT_WEEKDAYS = {name[:3]: name for name in WEEKDAYS}

MERIDIEMS = ("AM", "PM")

# Month grid columns, Sunday first
DAY_HEADERS = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

DATE_FORMAT = "%Y-%m-%d"


def new_course_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Course:
    """
    One weekly-recurring course.

    ``start_time`` is stored as 24-hour "HH:MM". ``excluded_dates`` is kept
    ascending and free of duplicates; every entry is a real occurrence date.
    """

    id: str
    title: str
    weekday: str
    start_date: date
    end_date: date
    start_time: str
    duration: float
    location: str = ""
    description: str = ""
    excluded_dates: Tuple[date, ...] = field(default_factory=tuple)

    @property
    def weekday_index(self) -> int:
        return WEEKDAY_INDEX[self.weekday]


class Occurrence(NamedTuple):
    """One concrete instance of a course. Computed on demand, never stored."""

    course_id: str
    day: date
    start: datetime
    end: datetime


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(text: str) -> date:
    """Parse a 'YYYY-MM-DD' string. Raises ValueError on bad input."""
    return datetime.strptime(text.strip(), DATE_FORMAT).date()
