"""
Data model for the calendar engine.

Event is one concrete occurrence stored in a Calendar. EventSpec is the
fully-populated request a caller hands to the engine to create events;
build_event() validates it and produces the stored Event.

Event times are naive wall-clock datetimes in the owning calendar's
timezone. Changing a calendar's zone re-times its events
(see CalendarStore.retime_zone_change).
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date, time, timedelta
from enum import IntEnum
from typing import Iterable, Optional, Union

from .errors import ValidationError
from .timezone_utils import require_naive


class Weekday(IntEnum):
    """Day of week, numbered like date.weekday() (Monday=0)."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def code(self) -> str:
        """Single-letter code: M T W R F S U."""
        return "MTWRFSU"[self.value]

    @classmethod
    def of(cls, day: date) -> 'Weekday':
        return cls(day.weekday())

    @classmethod
    def from_code(cls, code: str) -> 'Weekday':
        index = "MTWRFSU".find(code.strip().upper())
        if len(code.strip()) != 1 or index < 0:
            raise ValidationError(f"Invalid weekday code: {code!r}")
        return cls(index)

    @classmethod
    def parse_codes(cls, codes: str) -> frozenset['Weekday']:
        """Parse a string of weekday letters such as "MWF"."""
        return frozenset(cls.from_code(c) for c in codes if not c.isspace())


# End-of-day wall-clock time used for all-day events
END_OF_DAY = time(23, 59, 59)


@dataclass
class Event:
    """
    One concrete calendar occurrence.

    Stored events are owned by their Calendar and mutated in place by edit
    operations; query methods hand out copies (see copy()).
    """
    name: str
    start: datetime
    end: datetime
    description: str = ""
    location: str = ""
    is_public: bool = True
    is_part_of_recurrence: bool = False
    recurrence_days: frozenset[Weekday] = frozenset()
    auto_decline: bool = True

    @property
    def is_private(self) -> bool:
        return not self.is_public

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_all_day(self) -> bool:
        """True for an event spanning 00:00:00 to 23:59:59 of one date."""
        return (
            self.start.time() == time.min
            and self.end.time() == END_OF_DAY
            and self.start.date() == self.end.date()
        )

    def matches(self, name: str, start: datetime, end: Optional[datetime] = None) -> bool:
        if self.name != name or self.start != start:
            return False
        return end is None or self.end == end

    def copy(self) -> 'Event':
        return replace(self)

    def __repr__(self):
        return f"Event(name={self.name!r}, start={self.start}, end={self.end})"


@dataclass
class EventSpec:
    """
    Request to create one event or a recurring series.

    For a recurring series, exactly one of recurrence_count and
    recurrence_end_date is set and recurrence_days names the weekdays the
    series falls on. A non-recurring request leaves all three unset.
    """
    name: Optional[str]
    start: Optional[datetime]
    end: Optional[datetime]
    description: str = ""
    location: str = ""
    is_public: bool = True
    auto_decline: bool = True
    is_recurring: bool = False
    recurrence_days: Optional[Iterable[Weekday]] = None
    recurrence_count: Optional[int] = None
    recurrence_end_date: Optional[Union[date, datetime]] = None

    @property
    def weekdays(self) -> frozenset[Weekday]:
        if self.recurrence_days is None:
            return frozenset()
        return frozenset(Weekday(d) for d in self.recurrence_days)

    @property
    def end_date(self) -> Optional[date]:
        """recurrence_end_date reduced to a calendar date."""
        value = self.recurrence_end_date
        if isinstance(value, datetime):
            return value.date()
        return value


@dataclass
class Calendar:
    """Named, timezone-tagged, insertion-ordered collection of events."""
    name: str
    timezone: str
    events: list[Event] = field(default_factory=list)

    def has_name(self, name: Optional[str]) -> bool:
        return name is not None and self.name.casefold() == name.casefold()

    def add_event(self, event: Event) -> None:
        self.events.append(event)

    def add_events(self, events: Iterable[Event]) -> None:
        self.events.extend(events)

    def snapshot(self) -> list[Event]:
        """Copies of all events, for rolling back a failed multi-step edit."""
        return [e.copy() for e in self.events]

    def restore(self, snapshot: list[Event]) -> None:
        self.events = snapshot


# ==================== Validation ====================

def validate_basic(spec: EventSpec) -> None:
    """Checks shared by every event request."""
    if spec.name is None or not spec.name.strip():
        raise ValidationError("Event name is required.")
    if spec.start is None:
        raise ValidationError("Start date and time are required.")
    if spec.end is None:
        raise ValidationError("End date and time are required.")
    require_naive(spec.start, "start date and time")
    require_naive(spec.end, "end date and time")
    if spec.end <= spec.start:
        raise ValidationError("End date and time must be after start date and time.")


def validate_spec(spec: EventSpec) -> None:
    """Validate an event request, raising ValidationError on the first problem."""
    validate_basic(spec)

    if not spec.is_recurring:
        if (spec.recurrence_count is not None or spec.recurrence_end_date is not None
                or spec.weekdays):
            raise ValidationError("Non-recurring event should not have recurrence parameters.")
        return

    if spec.start.date() != spec.end.date():
        raise ValidationError("Recurring events must have start and end on the same day.")

    if spec.recurrence_count is None and spec.recurrence_end_date is None:
        raise ValidationError(
            "Either recurrence count or recurrence end date must be defined for a recurring event."
        )
    if spec.recurrence_count is not None and spec.recurrence_end_date is not None:
        raise ValidationError(
            "Cannot define both recurrence count and recurrence end date for a recurring event."
        )
    if spec.recurrence_count is not None and spec.recurrence_count <= 0:
        raise ValidationError("Recurrence count must be greater than 0.")

    # An empty set would otherwise degrade into a daily series
    if not spec.weekdays:
        raise ValidationError("Recurrence days must be provided for recurring events.")

    if spec.end_date is not None and spec.end_date < spec.start.date():
        raise ValidationError("Recurrence end date must not be before the event start date.")


def build_event(spec: EventSpec) -> Event:
    """Validate a non-recurring request and build the Event it describes."""
    if spec.is_recurring:
        raise ValidationError("Recurring requests expand to several events; use expand_recurrence().")
    validate_spec(spec)
    return Event(
        name=spec.name,
        start=spec.start,
        end=spec.end,
        description=spec.description or "",
        location=spec.location or "",
        is_public=spec.is_public,
        auto_decline=spec.auto_decline,
    )
