"""
Error types shared by the codec, import, export and collection layers.
"""
from __future__ import annotations


class ScheduleWiseError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(ScheduleWiseError, ValueError):
    """A user-entered field is malformed. ``field`` names the offending input."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidTimeFormat(ValidationError):
    pass


class InvalidTimeValue(ValidationError):
    pass


class FormatError(ScheduleWiseError, ValueError):
    """Stored or imported data could not be used as-is."""


class FatalOperationError(ScheduleWiseError):
    """A whole-collection operation was aborted; state is left unchanged."""


class EmptyCollection(FatalOperationError):
    pass


class NoExportableEvents(FatalOperationError):
    pass


class CourseNotFound(ScheduleWiseError, KeyError):
    def __init__(self, course_id: str):
        super().__init__(course_id)
        self.course_id = course_id

    def __str__(self) -> str:
        return f"No course with id {self.course_id!r}"
