"""
Error types raised by the calendar engine.

Every failure the engine reports derives from CalendarError so callers
(command layer, entry script) can catch one type and show its message.
"""

from typing import Optional


class CalendarError(Exception):
    """Base class for all engine failures."""


class ValidationError(CalendarError, ValueError):
    """Malformed or missing input."""


class ConflictError(CalendarError):
    """A new or edited interval overlaps an event already in the calendar."""


class NotFoundError(CalendarError, LookupError):
    """Unknown calendar or event."""


class NoCalendarSelectedError(CalendarError):
    """The operation needs an active calendar but none is in use."""

    def __init__(self, message: str = "No calendar selected. Use a calendar first."):
        super().__init__(message)


class DuplicateNameError(CalendarError):
    """A calendar with this name already exists (case-insensitive)."""


class InvalidTimezoneError(ValidationError):
    """The timezone identifier cannot be resolved."""

    def __init__(self, timezone: Optional[str]):
        super().__init__(f"Invalid timezone: {timezone}")
        self.timezone = timezone


class InvalidHeaderError(ValidationError):
    """The CSV header row does not match the interchange format."""

    def __init__(self, line: int = 1):
        super().__init__(f"Line {line}: Invalid Header line")
        self.line = line


class ImportValidationError(ValidationError):
    """One or more CSV rows failed validation; carries every line-tagged message."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)
