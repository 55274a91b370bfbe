"""
Calendar Engine

This package provides the core functionality for calendar scheduling:
- Data model: calendars, events and event requests (models.py)
- Recurrence expansion (recurrence.py)
- Conflict detection over an interval tree (conflicts.py, interval_tree.py)
- Calendar store with create/edit/copy/query operations (calendar_store.py)
- CSV import/export (csv_codec.py)
- Configuration and logging setup (config.py, log_setup.py)
"""

from .config import Config, ConfigError
from .errors import (
    CalendarError, ValidationError, ConflictError, NotFoundError,
    NoCalendarSelectedError, DuplicateNameError, InvalidTimezoneError,
    InvalidHeaderError, ImportValidationError,
)
from .models import Weekday, Event, EventSpec, Calendar
from .calendar_store import CalendarStore, ReadOnlyCalendarView
from .csv_codec import CsvCodec, import_events, export_events
from .log_setup import configure_logging

__all__ = [
    'Config',
    'ConfigError',
    'CalendarError',
    'ValidationError',
    'ConflictError',
    'NotFoundError',
    'NoCalendarSelectedError',
    'DuplicateNameError',
    'InvalidTimezoneError',
    'InvalidHeaderError',
    'ImportValidationError',
    'Weekday',
    'Event',
    'EventSpec',
    'Calendar',
    'CalendarStore',
    'ReadOnlyCalendarView',
    'CsvCodec',
    'import_events',
    'export_events',
    'configure_logging',
]
