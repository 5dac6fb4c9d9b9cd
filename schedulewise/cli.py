"""
Command-line interface: manage weekly courses, import TXT, export ICS.
"""
from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from . import __version__
from .calendar_grid import courses_on, month_matrix
from .config import load_settings, validate_timezone
from .errors import FatalOperationError, ScheduleWiseError
from .logging_setup import configure_logging
from .model import DAY_HEADERS, MERIDIEMS, WEEKDAYS, Course, format_date, parse_date
from .schedule import (
    add_course,
    add_courses,
    clear_courses,
    course_from_form,
    exclude_date,
    export_and_reset,
    find_course,
    remove_course,
    replace_course,
)
from .storage import load_courses, save_courses
from .text_import import parse_import_text, read_import_file
from .timefmt import format_for_display, to_12_hour


def _short_title(title: str) -> str:
    return f"{title[:10]}..." if len(title) > 12 else title


def _describe(course: Course) -> str:
    line = (
        f"{course.id}  {course.title}\n"
        f"    {course.weekday} {format_for_display(course.start_time)} ({course.duration:g}h), "
        f"{format_date(course.start_date)} to {format_date(course.end_date)}\n"
        f"    Location: {course.location or '-'}"
    )
    if course.description:
        line += f"\n    Lecturer: {course.description}"
    if course.excluded_dates:
        line += "\n    Excluded: " + ", ".join(format_date(d) for d in course.excluded_dates)
    return line


def _cmd_list(args, courses) -> int:
    if not courses:
        print("No courses scheduled. Add courses with 'add' or 'import'.")
        return 0
    for course in courses:
        print(_describe(course))
    return 0


def _cmd_add(args, courses, store: Path) -> int:
    course = course_from_form(
        title=args.title,
        weekday=args.weekday,
        start_date=args.start_date,
        end_date=args.end_date,
        start_time=args.time,
        meridiem=args.ampm or "AM",
        duration=args.duration,
        location=args.location or "",
        description=args.lecturer or "",
    )
    save_courses(add_course(courses, course), store)
    print(f'Course Added! "{course.title}" has been successfully added to your schedule. (id: {course.id})')
    return 0


def _cmd_edit(args, courses, store: Path) -> int:
    old = find_course(courses, args.course_id)
    old_time, old_ampm = to_12_hour(old.start_time)
    course = course_from_form(
        title=args.title if args.title is not None else old.title,
        weekday=args.weekday or old.weekday,
        start_date=args.start_date or old.start_date,
        end_date=args.end_date or old.end_date,
        start_time=args.time or old_time,
        meridiem=args.ampm or old_ampm,
        duration=args.duration if args.duration is not None else old.duration,
        location=args.location if args.location is not None else old.location,
        description=args.lecturer if args.lecturer is not None else old.description,
        course_id=old.id,
        excluded_dates=old.excluded_dates,
    )
    save_courses(replace_course(courses, course), store)
    print(f'Course Updated! "{course.title}" has been successfully updated.')
    return 0


def _cmd_remove(args, courses, store: Path) -> int:
    course = find_course(courses, args.course_id)
    save_courses(remove_course(courses, course.id), store)
    print(f'Course Deleted. "{course.title}" has been removed from your schedule.')
    return 0


def _cmd_clear(args, courses, store: Path) -> int:
    if not courses:
        print("No Courses. The schedule is already empty.")
        return 0
    save_courses(clear_courses(courses), store)
    print("Schedule Cleared. All courses have been removed.")
    return 0


def _cmd_exclude(args, courses, store: Path) -> int:
    day = parse_date(args.date)
    course = find_course(courses, args.course_id)
    save_courses(exclude_date(courses, course.id, day), store)
    print(f'Occurrence Removed. The occurrence of "{course.title}" on {format_date(day)} has been removed.')
    return 0


def _cmd_month(args, courses) -> int:
    today = date.today()
    year = args.year or today.year
    month = args.month or today.month
    matrix = month_matrix(year, month)

    print(f"{year}-{month:02d}")
    print(" ".join(f"{h:>4}" for h in DAY_HEADERS))
    for week in matrix:
        cells = []
        for day in week:
            if day is None:
                cells.append("    ")
            else:
                marker = "*" if courses_on(courses, day) else " "
                cells.append(f"{day.day:>3}{marker}")
        print(" ".join(cells))

    listed = False
    for week in matrix:
        for day in week:
            if day is None:
                continue
            for course in courses_on(courses, day):
                if not listed:
                    print()
                    listed = True
                print(
                    f"{format_date(day)}  {format_for_display(course.start_time)}  "
                    f"{_short_title(course.title)} ({course.duration:g}h)  {course.location}"
                )
    if not courses:
        print("\nNo courses scheduled for this month. Add courses with 'add' or 'import'.")
    return 0


def _cmd_import(args, courses, store: Path) -> int:
    try:
        text = read_import_file(args.file)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Import Failed: error reading file: {e}", file=sys.stderr)
        return 1
    if not text:
        print("Import Failed: file is empty or could not be read.", file=sys.stderr)
        return 1

    result = parse_import_text(text)
    if result.courses:
        save_courses(add_courses(courses, result.courses), store)
    title, description = result.summary()
    print(f"{title}: {description}")
    return 0 if result.courses or not result.errors else 1


def _cmd_export(args, courses, store: Path, tz_name: Optional[str], export_dir: Path) -> int:
    if not courses:
        print("No Courses to Export. Please add some courses first.")
        return 1
    try:
        result, path, remaining = export_and_reset(courses, export_dir, tz_name)
    except FatalOperationError as e:
        print(f"Export Failed: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Export Failed: could not write file: {e}", file=sys.stderr)
        return 1
    save_courses(remaining, store)
    print(f"Export Successful & Schedule Cleared. {result.summary()} Written to {path}")
    return 0


def _add_course_options(p: argparse.ArgumentParser, required: bool) -> None:
    p.add_argument("--title", required=required, help="Course title")
    p.add_argument("--weekday", choices=WEEKDAYS, required=required, help="Day the course takes place")
    p.add_argument("--start-date", metavar="YYYY-MM-DD", required=required, help="First day of the course")
    p.add_argument("--end-date", metavar="YYYY-MM-DD", required=required, help="Last day of the course")
    p.add_argument("--time", metavar="H:MM", required=required, help="Start time, 12-hour (e.g. 9:30)")
    p.add_argument(
        "--ampm",
        choices=MERIDIEMS,
        type=str.upper,
        default=None,
        help="AM or PM. Default for new courses: AM",
    )
    p.add_argument("--duration", required=required, help="Duration in hours, e.g. 1.5")
    p.add_argument("--location", help="Room or building")
    p.add_argument("--lecturer", help="Lecturer name")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedulewise",
        description="Plan weekly courses, import them from TXT and export them to an ICS calendar.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--store", metavar="PATH", help="Course store file. Default: ~/.schedulewise/courses.json")
    parser.add_argument(
        "--tz",
        metavar="ZONE",
        help="Local timezone used for the RRULE UNTIL bound, e.g. Europe/Berlin. Default: host zone",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all courses")

    p_add = sub.add_parser("add", help="Add a course")
    _add_course_options(p_add, required=True)

    p_edit = sub.add_parser("edit", help="Edit a course; omitted options keep their value")
    p_edit.add_argument("course_id", help="Course id (see 'list')")
    _add_course_options(p_edit, required=False)

    p_remove = sub.add_parser("remove", help="Delete a course")
    p_remove.add_argument("course_id", help="Course id (see 'list')")

    sub.add_parser("clear", help="Delete all courses")

    p_exclude = sub.add_parser("exclude", help="Remove a single occurrence of a course")
    p_exclude.add_argument("course_id", help="Course id (see 'list')")
    p_exclude.add_argument("date", metavar="YYYY-MM-DD", help="Date of the occurrence to remove")

    p_month = sub.add_parser("month", help="Show a month calendar")
    p_month.add_argument("--year", type=int, help="Default: current year")
    p_month.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12", help="Default: current month")

    p_import = sub.add_parser("import", help="Import courses from a TXT file")
    p_import.add_argument("file", help="Path to the TXT file")

    p_export = sub.add_parser("export", help="Export all courses to ICS, then clear the schedule")
    p_export.add_argument("--export-dir", metavar="DIR", help="Output directory. Default: current directory")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        tz_name = validate_timezone(args.tz) if args.tz else settings.timezone
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(verbose=args.verbose, log_dir=settings.log_dir)

    store = Path(args.store) if args.store else settings.store_path
    courses = load_courses(store)

    try:
        if args.command == "list":
            return _cmd_list(args, courses)
        if args.command == "add":
            return _cmd_add(args, courses, store)
        if args.command == "edit":
            return _cmd_edit(args, courses, store)
        if args.command == "remove":
            return _cmd_remove(args, courses, store)
        if args.command == "clear":
            return _cmd_clear(args, courses, store)
        if args.command == "exclude":
            return _cmd_exclude(args, courses, store)
        if args.command == "month":
            return _cmd_month(args, courses)
        if args.command == "import":
            return _cmd_import(args, courses, store)
        if args.command == "export":
            export_dir = Path(args.export_dir) if args.export_dir else settings.export_dir
            return _cmd_export(args, courses, store, tz_name, export_dir)
    except (ScheduleWiseError, ValueError, OverflowError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: could not update {store}: {e}", file=sys.stderr)
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
