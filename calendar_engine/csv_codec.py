"""
CSV interchange format for calendar events.

The format is the Google Calendar style CSV:

    Subject,Start Date,Start Time,End Date,End Time,All Day Event,Description,Location,Private

Dates are MM/dd/yyyy and times hh:mm AM/PM. All-day rows leave both time
columns empty. Subject, Description and Location are always quoted.

Decoding collects every line-tagged problem before failing, so a file
either imports completely or not at all.
"""

import csv
import io
import logging
import re
from datetime import datetime, date, time
from typing import Iterable, Optional

from .errors import ImportValidationError, InvalidHeaderError
from .models import END_OF_DAY, Event, EventSpec
from .timezone_utils import shift_wall_clock, validate_timezone

logger = logging.getLogger(__name__)

HEADER_FIELDS = [
    "Subject", "Start Date", "Start Time", "End Date", "End Time",
    "All Day Event", "Description", "Location", "Private",
]
HEADER = ",".join(HEADER_FIELDS)

DATE_FORMAT = "%m/%d/%Y"

# hh:mm AM/PM, parsed by hand so the result never depends on the locale
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: time) -> str:
    """Format as 12-hour hh:mm AM/PM."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour:02d}:{value.minute:02d} {suffix}"


def parse_date(text: str) -> date:
    return datetime.strptime(text.strip(), DATE_FORMAT).date()


def parse_time(text: str) -> time:
    match = _TIME_RE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid time: {text!r}")
    hour, minute, suffix = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12:
        raise ValueError(f"Invalid hour: {text!r}")
    if suffix == "AM":
        hour = 0 if hour == 12 else hour
    else:
        hour = 12 if hour == 12 else hour + 12
    return time(hour, minute)


def _quote(value: Optional[str]) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def _bool_text(value: bool) -> str:
    return "True" if value else "False"


class CsvCodec:
    """Encodes Events to the interchange format and decodes it back into EventSpecs."""

    @classmethod
    def encode(cls, events: Iterable[Event]) -> str:
        lines = [HEADER]
        for event in events:
            all_day = event.is_all_day
            lines.append(",".join([
                _quote(event.name),
                format_date(event.start.date()),
                "" if all_day else format_time(event.start.time()),
                format_date(event.end.date()),
                "" if all_day else format_time(event.end.time()),
                _bool_text(all_day),
                _quote(event.description),
                _quote(event.location),
                _bool_text(event.is_private),
            ]))
        return "\n".join(lines) + "\n"

    @classmethod
    def decode(cls, text: str, strict: bool = True) -> list[EventSpec]:
        """
        Parse CSV text into event requests.

        Line 1 must be the exact header. In strict mode every data row must
        have all nine columns; otherwise rows with fewer than eight columns
        are skipped and a missing Private column reads as False.

        Raises:
            InvalidHeaderError: the first line is not the expected header.
            ImportValidationError: one or more rows are invalid; carries every
                "Line N: ..." message.
        """
        first_line = text.split("\n", 1)[0].rstrip("\r")
        if first_line != HEADER:
            raise InvalidHeaderError(1)

        reader = csv.reader(io.StringIO(text))
        next(reader)

        specs: list[EventSpec] = []
        errors: list[str] = []

        while True:
            # line_num counts physical lines, so quoted newlines are included
            line_no = reader.line_num + 1
            try:
                fields = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                errors.append(f"Line {line_no}: {e}")
                raise ImportValidationError(errors) from e

            if not fields or all(not f.strip() for f in fields):
                continue

            if strict and len(fields) != len(HEADER_FIELDS):
                errors.append(f"Line {line_no}: Expected {len(HEADER_FIELDS)} fields but found {len(fields)}")
                continue
            if not strict:
                if len(fields) < len(HEADER_FIELDS) - 1:
                    logger.debug("Skipping line %d: only %d fields", line_no, len(fields))
                    continue
                fields = fields + [""] * (len(HEADER_FIELDS) - len(fields))
                if not fields[8].strip():
                    fields[8] = "False"

            spec, problems = cls._decode_row(fields)
            if problems:
                errors.extend(f"Line {line_no}: {p}" for p in problems)
            else:
                specs.append(spec)

        if errors:
            raise ImportValidationError(errors)
        return specs

    @staticmethod
    def _decode_row(fields: list[str]) -> tuple[Optional[EventSpec], list[str]]:
        name, start_date, start_time, end_date, end_time, all_day, description, location, private = (
            f.strip() for f in fields[:len(HEADER_FIELDS)]
        )
        problems = []

        if not name:
            problems.append("Event name is mandatory")
        if not start_date:
            problems.append("Start date is mandatory")
        if not end_date:
            problems.append("End date is mandatory")

        all_day_ok = all_day.upper() in ("TRUE", "FALSE")
        if not all_day_ok:
            problems.append("All Day Event must be TRUE or FALSE")
        if private.upper() not in ("TRUE", "FALSE"):
            problems.append("Private must be TRUE or FALSE")

        is_all_day = all_day.upper() == "TRUE"
        if all_day_ok and not is_all_day:
            if not start_time:
                problems.append("Start time is mandatory for non-all-day events")
            if not end_time:
                problems.append("End time is mandatory for non-all-day events")

        if problems:
            return None, problems

        try:
            if is_all_day:
                start = datetime.combine(parse_date(start_date), time.min)
                end = datetime.combine(parse_date(end_date), END_OF_DAY)
            else:
                start = datetime.combine(parse_date(start_date), parse_time(start_time))
                end = datetime.combine(parse_date(end_date), parse_time(end_time))
        except ValueError:
            return None, ["Invalid date/time format"]

        if end <= start:
            return None, ["End date/time must be after start date/time"]

        return EventSpec(
            name=name,
            start=start,
            end=end,
            description=description,
            location=location,
            is_public=private.upper() != "TRUE",
            auto_decline=True,
        ), []


def import_events(store, calendar_name: Optional[str], text: str,
                  strict: bool = True, source_timezone: Optional[str] = None) -> int:
    """
    Decode CSV text and add every row to a calendar in one all-or-nothing batch.

    With source_timezone, row times are read as wall-clock times in that zone
    and shifted into the calendar's zone first.

    Returns:
        Number of events added.
    """
    specs = CsvCodec.decode(text, strict=strict)

    if source_timezone is not None:
        source_zone = validate_timezone(source_timezone)
        target_zone = store.get_calendar_timezone(calendar_name)
        for spec in specs:
            spec.start = shift_wall_clock(spec.start, source_zone, target_zone)
            spec.end = shift_wall_clock(spec.end, source_zone, target_zone)

    store.add_events(calendar_name, specs)
    logger.info("Imported %d events into %r", len(specs), calendar_name or store.current_calendar)
    return len(specs)


def export_events(store, calendar_name: Optional[str] = None) -> str:
    """Encode every event of a calendar, in calendar order."""
    events = store.get_all_events(calendar_name)
    logger.info("Exported %d events from %r", len(events), calendar_name or store.current_calendar)
    return CsvCodec.encode(events)
