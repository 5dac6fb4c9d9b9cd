"""Tests for export.py – ICS encoding of weekly courses."""
from datetime import date, datetime

import icalendar
import pytest

from schedulewise.calendar_grid import occurrences
from schedulewise.errors import EmptyCollection, FormatError, NoExportableEvents
from schedulewise.export import (
    EXPORT_FILENAME,
    MIME_TYPE,
    build_calendar,
    build_event,
    first_occurrence,
    write_export,
)
from schedulewise.model import Course


def _course(**overrides) -> Course:
    fields = dict(
        id="c1",
        title="Algorithms",
        weekday="Monday",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
        start_time="09:00",
        duration=1.5,
        location="Room 1",
        description="Dr. X",
        excluded_dates=(),
    )
    fields.update(overrides)
    return Course(**fields)


def _content(courses, tz_name="Asia/Hong_Kong") -> str:
    return build_calendar(courses, tz_name).payload.decode("utf-8")


class TestBuildCalendar:
    def test_weekly_event(self):
        content = _content([_course()])

        assert "BEGIN:VCALENDAR" in content
        assert "PRODID:-//ScheduleWise//EN" in content
        assert "X-WR-CALNAME:ScheduleWise Calendar" in content
        assert content.count("BEGIN:VEVENT") == 1
        assert "END:VCALENDAR" in content

        # Jan 1 2024 is a Monday
        assert "DTSTART:20240101T090000" in content
        assert "DURATION:PT1H30M" in content
        assert "SUMMARY:Algorithms" in content
        assert "LOCATION:Room 1" in content
        assert "DESCRIPTION:Lecturer: Dr. X" in content
        assert "UID:schedulewise-c1-0@schedulewise" in content

    def test_rrule_until_is_utc(self):
        content = _content([_course()])
        assert "FREQ=WEEKLY" in content
        assert "BYDAY=MO" in content
        assert "INTERVAL=1" in content
        # 2024-01-31 23:59:59 in Hong Kong (UTC+8)
        assert "UNTIL=20240131T155959Z" in content

    def test_rrule_until_in_utc_zone(self):
        content = _content([_course()], tz_name="UTC")
        assert "UNTIL=20240131T235959Z" in content

    def test_reminder_alarm(self):
        content = _content([_course()])
        assert "BEGIN:VALARM" in content
        assert "ACTION:DISPLAY" in content
        assert "DESCRIPTION:Reminder" in content
        assert "TRIGGER:-PT10M" in content

    def test_first_occurrence_after_start_date(self):
        # Wednesday 2024-01-03 -> first Friday is 2024-01-05
        content = _content([_course(weekday="Friday", start_date=date(2024, 1, 3))])
        assert "DTSTART:20240105T090000" in content
        assert "BYDAY=FR" in content

    def test_whole_hour_duration(self):
        content = _content([_course(duration=2)])
        assert "DURATION:PT2H" in content

    def test_exdate_within_range(self):
        course = _course(excluded_dates=(date(2024, 1, 8), date(2024, 1, 22)))
        content = _content([course])
        assert "EXDATE:20240108T090000,20240122T090000" in content

    def test_exdate_outside_range_is_omitted(self):
        course = _course(excluded_dates=(date(2023, 12, 25), date(2024, 2, 5)))
        content = _content([course])
        assert "EXDATE" not in content

    def test_optional_fields_omitted(self):
        content = _content([_course(location="", description="")])
        assert "LOCATION" not in content
        assert "Lecturer" not in content

    def test_uid_uses_position(self):
        content = _content([_course(id="a"), _course(id="b")])
        assert "UID:schedulewise-a-0@schedulewise" in content
        assert "UID:schedulewise-b-1@schedulewise" in content

    def test_result_metadata(self):
        result = build_calendar([_course()], "UTC")
        assert result.filename == EXPORT_FILENAME == "ScheduleWise_Courses.ics"
        assert result.mime_type == MIME_TYPE == "text/calendar"
        assert result.exported == 1
        assert result.skipped == []
        assert isinstance(result.payload, bytes)


class TestPartialFailure:
    def test_range_shorter_than_a_week_is_skipped(self):
        # Tue..Fri never contains a Monday
        short = _course(id="short", title="Short", start_date=date(2024, 1, 2), end_date=date(2024, 1, 5))
        result = build_calendar([short, _course()], "UTC")
        assert result.exported == 1
        assert len(result.skipped) == 1
        assert "Short" in result.skipped[0]
        assert "UID:schedulewise-c1-1@schedulewise" in result.payload.decode("utf-8")

    def test_broken_course_does_not_stop_others(self):
        broken = _course(id="bad", title="Broken", start_time="25:99")
        result = build_calendar([broken, _course()], "UTC")
        assert result.exported == 1
        assert "Broken" in result.skipped[0]

    @pytest.mark.parametrize("duration", [float("inf"), 1e300])
    def test_oversized_duration_does_not_stop_others(self, duration):
        huge = _course(id="huge", title="Huge", duration=duration)
        result = build_calendar([huge, _course()], "UTC")
        assert result.exported == 1
        assert "Huge" in result.skipped[0]

    def test_infinite_duration_rejected(self):
        with pytest.raises(FormatError):
            build_event(_course(duration=float("inf")), 0, "UTC")

    def test_date_at_calendar_limit_does_not_stop_others(self):
        # 9999-12-31 is a Friday, the next Monday does not exist
        late = _course(id="late", title="Late", start_date=date(9999, 12, 31), end_date=date(9999, 12, 31))
        result = build_calendar([late, _course()], "UTC")
        assert result.exported == 1
        assert "Late" in result.skipped[0]

    def test_no_event_survives(self):
        broken = _course(start_time="nope")
        with pytest.raises(NoExportableEvents):
            build_calendar([broken], "UTC")

    def test_empty_collection(self):
        with pytest.raises(EmptyCollection):
            build_calendar([], "UTC")

    def test_build_event_returns_none_without_occurrence(self):
        course = _course(start_date=date(2024, 1, 2), end_date=date(2024, 1, 5))
        assert build_event(course, 0, "UTC") is None


class TestRoundTrip:
    def test_dtstart_matches_first_occurrence(self):
        course = _course(weekday="Thursday", start_date=date(2024, 1, 1), start_time="14:15")
        payload = build_calendar([course], "UTC").payload

        cal = icalendar.Calendar.from_ical(payload)
        events = list(cal.walk("VEVENT"))
        assert len(events) == 1
        dtstart = events[0]["DTSTART"].dt

        first = next(occurrences(course))
        assert dtstart == first.start == datetime(2024, 1, 4, 14, 15)
        assert first_occurrence(course) == dtstart


class TestWriteExport:
    def test_write_export(self, tmp_path):
        result = build_calendar([_course()], "UTC")
        out = write_export(result, tmp_path / "out")

        assert out == tmp_path / "out" / EXPORT_FILENAME
        assert out.read_bytes() == result.payload
        # no temporary files left behind
        assert [p.name for p in out.parent.iterdir()] == [EXPORT_FILENAME]
