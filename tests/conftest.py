"""Shared fixtures for the calendar engine tests."""

from datetime import datetime

import pytest

from calendar_engine import CalendarStore, EventSpec
from calendar_engine.csv_codec import HEADER


@pytest.fixture
def store():
    """Empty store with no calendars."""
    return CalendarStore()


@pytest.fixture
def work_store(store):
    """Store with an active "Work" calendar in America/New_York."""
    store.create_calendar("Work", "America/New_York")
    store.use_calendar("Work")
    return store


@pytest.fixture
def make_spec():
    """Build a non-recurring EventSpec; times are (hour, minute) on 2025-05-01 unless given as datetimes."""
    def _make(name="Meeting", start=(10, 0), end=(11, 0), **kwargs):
        if isinstance(start, tuple):
            start = datetime(2025, 5, 1, *start)
        if isinstance(end, tuple):
            end = datetime(2025, 5, 1, *end)
        return EventSpec(name=name, start=start, end=end, **kwargs)
    return _make


@pytest.fixture
def csv_text():
    """Join data rows under the interchange header."""
    def _build(*rows, header=HEADER):
        return "\n".join([header, *rows]) + "\n"
    return _build


@pytest.fixture
def csv_row():
    """One data row with sensible defaults; override any column by keyword."""
    def _row(subject='"Meeting"', start_date="05/01/2025", start_time="10:00 AM",
             end_date="05/01/2025", end_time="11:00 AM", all_day="False",
             description='"Desc"', location='"Room 1"', private="False"):
        return ",".join([subject, start_date, start_time, end_date, end_time,
                         all_day, description, location, private])
    return _row
