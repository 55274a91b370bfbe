"""
Calendar store for the calendar engine.

Owns every Calendar and the active-calendar pointer, and runs all event
creation, editing, copying and querying. Recurrence expansion and conflict
detection are delegated to recurrence.py and conflicts.py.

Multi-step operations (recurring creation, bulk add, bulk edit, copy,
timezone retime) validate everything first and commit only when the whole
operation succeeds, so a failure leaves the store untouched.

The store is not thread-safe; a multi-threaded host must guard every call
with one lock.
"""

import logging
from datetime import datetime, date, time
from typing import Iterable, Optional, Union

from .conflicts import events_at, find_conflicts, first_conflict
from .errors import (
    CalendarError, ConflictError, DuplicateNameError, NoCalendarSelectedError,
    NotFoundError, ValidationError,
)
from .models import Calendar, Event, EventSpec, build_event, validate_spec
from .recurrence import expand_recurrence
from .timezone_utils import require_naive, shift_wall_clock, validate_timezone, zone_offset_between

logger = logging.getLogger(__name__)

EDITABLE_PROPERTIES = ("name", "start", "end", "description", "location", "ispublic", "isprivate")
TIME_PROPERTIES = ("start", "end")

BUSY = "Busy"
AVAILABLE = "Available"


def _parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text not in ("true", "false"):
        raise ValidationError(f"Expected true or false but got {value!r}")
    return text == "true"


def _parse_moment(value: Union[str, datetime, time]) -> Union[datetime, time]:
    """Parse an edit value for start/end: an ISO datetime or a bare time of day."""
    if isinstance(value, (datetime, time)):
        return require_naive(value)
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = time.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid date/time value: {value!r}") from None
    return require_naive(parsed)


class CalendarStore:
    """
    In-memory store of named calendars.

    Calendar names are unique ignoring case. Operations that take a
    calendar_name accept None to mean the active calendar.
    """

    def __init__(self):
        # casefolded name -> Calendar, in creation order
        self._calendars: dict[str, Calendar] = {}
        self._current: Optional[Calendar] = None

    # ==================== Calendar Management ====================

    def create_calendar(self, name: str, timezone: str) -> bool:
        if name is None or not name.strip():
            raise ValidationError("Calendar name is required.")
        zone = validate_timezone(timezone)
        if name.casefold() in self._calendars:
            raise DuplicateNameError(f"Calendar with name '{name}' already exists.")

        self._calendars[name.casefold()] = Calendar(name=name, timezone=zone)
        logger.debug("Created calendar %r (%s)", name, zone)
        return True

    def delete_calendar(self, name: str) -> bool:
        calendar = self._get_calendar(name)
        del self._calendars[calendar.name.casefold()]
        if self._current is calendar:
            self._current = None
        logger.debug("Deleted calendar %r", calendar.name)
        return True

    def use_calendar(self, name: str) -> bool:
        """Make the named calendar the active one."""
        self._current = self._get_calendar(name)
        return True

    @property
    def current_calendar(self) -> Optional[str]:
        """Name of the active calendar, or None."""
        return self._current.name if self._current else None

    def get_calendar_names(self) -> list[str]:
        return [cal.name for cal in self._calendars.values()]

    def is_calendar_present(self, name: Optional[str]) -> bool:
        return name is not None and name.casefold() in self._calendars

    def get_calendar_timezone(self, name: Optional[str] = None) -> str:
        return self._resolve(name).timezone

    def edit_calendar(self, name: str, property: str, new_value: str) -> bool:
        """Rename a calendar or change its timezone."""
        calendar = self._get_calendar(name)
        prop = (property or "").strip().lower()

        if prop == "name":
            if new_value is None or not new_value.strip():
                raise ValidationError("Calendar name is required.")
            if not calendar.has_name(new_value) and new_value.casefold() in self._calendars:
                raise DuplicateNameError(f"Calendar with name '{new_value}' already exists.")
            del self._calendars[calendar.name.casefold()]
            calendar.name = new_value
            self._calendars[new_value.casefold()] = calendar
            logger.debug("Renamed calendar %r to %r", name, new_value)
            return True

        if prop == "timezone":
            return self.retime_zone_change(calendar.name, calendar.timezone, new_value)

        raise ValidationError(f"Unsupported property for calendar edit: {property}")

    def retime_zone_change(self, calendar_name: str, old_zone: str, new_zone: str) -> bool:
        """
        Move a calendar to a new timezone.

        Every stored event is re-timed so its wall-clock start and end in
        new_zone denote the same instants they denoted in old_zone.
        """
        calendar = self._resolve(calendar_name)
        old = validate_timezone(old_zone)
        new = validate_timezone(new_zone)
        if old != calendar.timezone:
            raise ValidationError(
                f"Calendar '{calendar.name}' is in {calendar.timezone}, not {old}"
            )

        retimed = [
            (event, shift_wall_clock(event.start, old, new), shift_wall_clock(event.end, old, new))
            for event in calendar.events
        ]
        for event, start, end in retimed:
            event.start = start
            event.end = end
        calendar.timezone = new
        logger.debug("Re-timed %d events of %r from %s to %s",
                     len(retimed), calendar.name, old, new)
        return True

    # ==================== Event Creation ====================

    def add_event(self, spec: EventSpec) -> bool:
        """
        Add an event, or every occurrence of a recurring series, to the
        active calendar. Nothing is added if any occurrence conflicts.
        """
        validate_spec(spec)
        calendar = self._active()

        if spec.is_recurring:
            occurrences = expand_recurrence(spec)
            clashes = find_conflicts(occurrences, calendar.events)
            if clashes:
                occurrence, existing = clashes[0]
                logger.debug("Rejected series %r: %s overlaps %r", spec.name, occurrence.start, existing)
                raise ConflictError(
                    f"Conflict detected on {occurrence.start.isoformat()} with event "
                    f"'{existing.name}', event not created"
                )
            calendar.add_events(occurrences)
            logger.debug("Added %d occurrences of %r to %r", len(occurrences), spec.name, calendar.name)
            return True

        event = build_event(spec)
        existing = first_conflict(event, calendar.events)
        if existing is not None:
            logger.debug("Rejected %r: overlaps %r", event, existing)
            raise ConflictError(f"Conflict detected with event '{existing.name}', event not created")
        calendar.add_event(event)
        logger.debug("Added %r to %r", event, calendar.name)
        return True

    def add_events(self, calendar_name: Optional[str], specs: Iterable[EventSpec]) -> bool:
        """
        Bulk add, used by import.

        The whole batch is validated and checked for conflicts (against the
        calendar and against the other new events) before anything is
        committed; a single bad request rejects the batch.
        """
        calendar = self._resolve(calendar_name)
        specs = list(specs)
        errors: list[str] = []
        new_events: list[Event] = []

        for spec in specs:
            try:
                validate_spec(spec)
                if spec.is_recurring:
                    new_events.extend(expand_recurrence(spec))
                else:
                    new_events.append(build_event(spec))
            except ValidationError as e:
                errors.append(f"Event {spec.name}: {e}")

        if errors:
            raise ValidationError("Cannot add all events: " + "; ".join(errors))

        new_ids = {id(e) for e in new_events}
        for event, other in find_conflicts(new_events, calendar.events):
            if id(other) in new_ids:
                errors.append(f"New event {event.name} conflicts with another new event {other.name}")
            else:
                errors.append(f"Event {event.name} conflicts with existing event {other.name}")

        if errors:
            raise ConflictError("Cannot add all events: " + "; ".join(errors))

        calendar.add_events(new_events)
        logger.info("Added %d events from %d requests to %r", len(new_events), len(specs), calendar.name)
        return True

    # ==================== Event Editing ====================

    def edit_event(
        self,
        calendar_name: Optional[str],
        property: str,
        event_name: str,
        from_: datetime,
        to: datetime,
        new_value: Union[str, datetime, bool],
    ) -> bool:
        """Edit one property of the event named event_name spanning [from_, to)."""
        calendar = self._resolve(calendar_name)
        prop = self._check_property(property, new_value)

        event = next((e for e in calendar.events if e.matches(event_name, from_, to)), None)
        if event is None:
            raise NotFoundError(f"No matching event found for editing: {event_name}")

        original = event.copy()
        self._apply_property(event, prop, new_value, keep_date=False)

        if prop in TIME_PROPERTIES:
            other = first_conflict(event, calendar.events, ignore=event)
            if other is not None:
                event.start, event.end = original.start, original.end
                raise ConflictError(f"Conflict detected after editing {prop} with event '{other.name}'")

        logger.debug("Edited %s of %r in %r", prop, event, calendar.name)
        return True

    def edit_events(
        self,
        calendar_name: Optional[str],
        property: str,
        event_name: str,
        from_: Optional[datetime],
        new_value: Union[str, datetime, time, bool],
        edit_all: bool = True,
    ) -> bool:
        """
        Edit every event named event_name starting at or after from_ (all of
        them when from_ is None), or only the first in calendar order when
        edit_all is False.

        For start/end the time of day is replaced and each event keeps its
        own date, so a whole series can be moved at once. The calendar is
        rolled back if any edit fails or leaves a conflict.
        """
        calendar = self._resolve(calendar_name)
        prop = self._check_property(property, new_value)
        require_naive(from_)

        matches = [
            e for e in calendar.events
            if e.name == event_name and (from_ is None or e.start >= from_)
        ]
        if not matches:
            raise NotFoundError(f"No matching event found for editing: {event_name}")
        if not edit_all:
            matches = matches[:1]

        snapshot = calendar.snapshot()
        try:
            for event in matches:
                self._apply_property(event, prop, new_value, keep_date=True)
            if prop in TIME_PROPERTIES:
                for event in matches:
                    other = first_conflict(event, calendar.events, ignore=event)
                    if other is not None:
                        raise ConflictError(
                            f"Conflict detected after editing {prop} of '{event.name}' "
                            f"on {event.start.date().isoformat()} with event '{other.name}'"
                        )
        except CalendarError:
            calendar.restore(snapshot)
            raise

        logger.debug("Edited %s of %d events named %r in %r", prop, len(matches), event_name, calendar.name)
        return True

    def _check_property(self, property: str, new_value) -> str:
        prop = (property or "").strip().lower()
        if prop not in EDITABLE_PROPERTIES:
            raise ValidationError(f"Unsupported property for edit: {property}")
        if new_value is None:
            raise ValidationError("Missing value for property update.")
        if prop not in ("description", "location") and isinstance(new_value, str) and not new_value.strip():
            raise ValidationError("Missing value for property update.")
        return prop

    def _apply_property(self, event: Event, prop: str, new_value, keep_date: bool) -> None:
        """Validate new_value for prop, then write it onto event."""
        if prop == "name":
            event.name = str(new_value)
        elif prop in TIME_PROPERTIES:
            moment = _parse_moment(new_value)
            current = event.start if prop == "start" else event.end
            if isinstance(moment, time):
                moment = datetime.combine(current.date(), moment)
            elif keep_date:
                moment = datetime.combine(current.date(), moment.time())

            if prop == "start":
                if moment >= event.end:
                    raise ValidationError("New start must be before current end time.")
                event.start = moment
            else:
                if moment <= event.start:
                    raise ValidationError("New end must be after current start time.")
                event.end = moment
        elif prop == "description":
            event.description = str(new_value)
        elif prop == "location":
            event.location = str(new_value)
        elif prop == "ispublic":
            event.is_public = _parse_bool(new_value)
        elif prop == "isprivate":
            event.is_public = not _parse_bool(new_value)

    # ==================== Copying ====================

    def copy_event(
        self,
        source_calendar: str,
        source_start: datetime,
        event_name: str,
        target_calendar: str,
        target_start: datetime,
    ) -> bool:
        """Copy the event named event_name starting at source_start so it starts at target_start."""
        if None in (source_calendar, source_start, event_name, target_calendar, target_start):
            raise ValidationError("All parameters must be provided and non-null.")
        require_naive(source_start, "source start")
        require_naive(target_start, "target start")
        source = self._get_calendar(source_calendar)
        target = self._get_calendar(target_calendar)

        original = next(
            (e for e in source.events
             if e.name.casefold() == event_name.casefold() and e.start == source_start),
            None,
        )
        if original is None:
            raise NotFoundError(
                f"Event with name '{event_name}' on {source_start.isoformat()} "
                f"not found in calendar {source.name}"
            )

        copied = self._copy_of(original, target_start)
        other = first_conflict(copied, target.events)
        if other is not None:
            raise ConflictError(
                f"Conflict detected when copying event '{original.name}' with event '{other.name}'"
            )
        target.add_event(copied)
        logger.debug("Copied %r from %r to %r at %s", original, source.name, target.name, target_start)
        return True

    def copy_events(
        self,
        source_calendar: str,
        range_start: datetime,
        range_end: datetime,
        target_calendar: str,
        target_date: Union[date, datetime],
    ) -> bool:
        """
        Copy every event starting within [range_start, range_end] to the
        target calendar, anchored so that range_start maps onto target_date.

        Each copy keeps its offset from range_start and its duration. Times
        are converted from the source calendar's zone to the target's. The
        copy is rejected as a whole if any copied event conflicts.
        """
        source = self._get_calendar(source_calendar)
        target = self._get_calendar(target_calendar)
        if range_start is None or range_end is None or target_date is None:
            raise ValidationError("Source start and source end times must be provided.")
        require_naive(range_start, "source start")
        require_naive(range_end, "source end")
        if range_end < range_start:
            raise ValidationError("Source end time must not be before source start time.")

        if isinstance(target_date, datetime):
            target_start = require_naive(target_date, "target date")
        else:
            target_start = datetime.combine(target_date, range_start.time())

        to_copy = sorted(
            (e for e in source.events if range_start <= e.start <= range_end),
            key=lambda e: e.start,
        )
        if not to_copy:
            raise NotFoundError(f"No events to copy between {range_start} and {range_end}")

        copies = []
        for event in to_copy:
            zone_shift = zone_offset_between(event.start, source.timezone, target.timezone)
            copies.append(self._copy_of(event, target_start + (event.start - range_start) + zone_shift))

        clashes = find_conflicts(copies, target.events)
        if clashes:
            copied, other = clashes[0]
            raise ConflictError(
                f"Conflict detected when copying event '{copied.name}' with event '{other.name}'"
            )

        target.add_events(copies)
        logger.debug("Copied %d events from %r to %r", len(copies), source.name, target.name)
        return True

    @staticmethod
    def _copy_of(event: Event, new_start: datetime) -> Event:
        return Event(
            name=event.name,
            start=new_start,
            end=new_start + event.duration,
            description=event.description,
            location=event.location,
            is_public=event.is_public,
        )

    # ==================== Queries ====================

    def get_events_in_range(self, calendar_name: Optional[str],
                            from_: datetime, to: datetime) -> list[Event]:
        """Copies of the events whose start lies in [from_, to]."""
        calendar = self._resolve(calendar_name)
        if from_ is None or to is None:
            raise ValidationError("Both start and end date-times must be provided.")
        require_naive(from_, "start date-time")
        require_naive(to, "end date-time")
        if to < from_:
            raise ValidationError("The end date-time must not be before the start date-time.")
        return [e.copy() for e in calendar.events if from_ <= e.start <= to]

    def get_events_at(self, calendar_name: Optional[str], instant: datetime) -> list[Event]:
        """Copies of the events in progress at instant."""
        calendar = self._resolve(calendar_name)
        if instant is None:
            raise ValidationError("date time cannot be null")
        require_naive(instant)
        return [e.copy() for e in events_at(instant, calendar.events)]

    def get_all_events(self, calendar_name: Optional[str] = None) -> list[Event]:
        return [e.copy() for e in self._resolve(calendar_name).events]

    def busy_status(self, calendar_name: Optional[str], instant: datetime) -> str:
        return BUSY if self.get_events_at(calendar_name, instant) else AVAILABLE

    def is_calendar_available(self, name: str, day: Optional[date] = None) -> bool:
        """True if the calendar exists and, when day is given, has no event starting that day."""
        calendar = self._calendars.get(name.casefold()) if name else None
        if calendar is None:
            return False
        if day is None:
            return True
        if isinstance(day, datetime):
            day = day.date()
        return not any(e.start.date() == day for e in calendar.events)

    # ==================== Lookup ====================

    def _get_calendar(self, name: Optional[str]) -> Calendar:
        calendar = self._calendars.get(name.casefold()) if name else None
        if calendar is None:
            raise NotFoundError(f"Calendar not found: {name}")
        return calendar

    def _active(self) -> Calendar:
        if self._current is None:
            raise NoCalendarSelectedError()
        return self._current

    def _resolve(self, name: Optional[str]) -> Calendar:
        return self._active() if name is None else self._get_calendar(name)


class ReadOnlyCalendarView:
    """Query-only facade over a CalendarStore for display collaborators."""

    def __init__(self, store: CalendarStore):
        self._store = store

    @property
    def current_calendar(self) -> Optional[str]:
        return self._store.current_calendar

    def get_calendar_names(self) -> list[str]:
        return self._store.get_calendar_names()

    def get_calendar_timezone(self, name: Optional[str] = None) -> str:
        return self._store.get_calendar_timezone(name)

    def get_events_in_range(self, calendar_name: Optional[str],
                            from_: datetime, to: datetime) -> list[Event]:
        return self._store.get_events_in_range(calendar_name, from_, to)

    def get_events_at(self, calendar_name: Optional[str], instant: datetime) -> list[Event]:
        return self._store.get_events_at(calendar_name, instant)

    def get_all_events(self, calendar_name: Optional[str] = None) -> list[Event]:
        return self._store.get_all_events(calendar_name)

    def busy_status(self, calendar_name: Optional[str], instant: datetime) -> str:
        return self._store.busy_status(calendar_name, instant)

    def is_calendar_available(self, name: str, day: Optional[date] = None) -> bool:
        return self._store.is_calendar_available(name, day)
