#!/usr/bin/env python3
"""
Calendar Manager - query and convert a calendar kept as a CSV snapshot.

This is the main entry point for the application. The snapshot is imported
into one calendar and a single command is run against it:

    calendar_manager.py work.csv print 2025-05-01 2025-05-07
    calendar_manager.py work.csv status 2025-05-01T10:30
    calendar_manager.py --timezone Europe/London work.csv export out.csv
"""

import sys
import argparse
import logging
from datetime import datetime, time
from pathlib import Path

from calendar_engine import (
    CalendarError, CalendarStore, Config, ConfigError, ValidationError,
    configure_logging, export_events, import_events,
)
from calendar_engine.models import END_OF_DAY
from calendar_engine.timezone_utils import to_wall_clock

logger = logging.getLogger("calendar_manager")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Calendar Manager - query and convert a CSV calendar snapshot"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    parser.add_argument("--calendar", help="Calendar name (default: from config)")
    parser.add_argument("--timezone", help="Calendar timezone (default: from config)")
    parser.add_argument("snapshot", type=Path, help="CSV snapshot to load")

    commands = parser.add_subparsers(dest="command", required=True)

    print_parser = commands.add_parser("print", help="List events starting in a range")
    print_parser.add_argument("start", help="ISO date or date-time")
    print_parser.add_argument("end", nargs="?", help="ISO date or date-time (default: end of start day)")

    status_parser = commands.add_parser("status", help="Show Busy or Available at a moment")
    status_parser.add_argument("at", help="ISO date-time")

    export_parser = commands.add_parser("export", help="Write the calendar to a CSV file")
    export_parser.add_argument("output", type=Path)

    commands.add_parser("validate", help="Check that the snapshot imports cleanly")

    return parser.parse_args(argv)


def _parse_moment(text: str, timezone: str, end_of_day: bool = False) -> datetime:
    """
    ISO date-time, or ISO date meaning the start (or end) of that day.

    A value with a UTC offset is converted to wall-clock time in the
    calendar's timezone.
    """
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid date/time: {text}") from None
    if len(text.strip()) <= len("YYYY-MM-DD"):
        return datetime.combine(value.date(), END_OF_DAY if end_of_day else time.min)
    return to_wall_clock(value, timezone)


def _format_event(event) -> str:
    if event.is_all_day:
        line = f"{event.start:%Y-%m-%d} (all day)  {event.name}"
    else:
        line = f"{event.start:%Y-%m-%d %H:%M} - {event.end:%Y-%m-%d %H:%M}  {event.name}"
    if event.location:
        line += f" @ {event.location}"
    if event.is_private:
        line += " [private]"
    return line


# ==================== Commands ====================

def cmd_print(store: CalendarStore, args) -> None:
    timezone = store.get_calendar_timezone()
    start = _parse_moment(args.start, timezone)
    end = _parse_moment(args.end, timezone, end_of_day=True) if args.end else datetime.combine(start.date(), END_OF_DAY)
    events = sorted(store.get_events_in_range(None, start, end), key=lambda e: e.start)
    if not events:
        print("No events")
    for event in events:
        print(_format_event(event))


def cmd_status(store: CalendarStore, args) -> None:
    print(store.busy_status(None, _parse_moment(args.at, store.get_calendar_timezone())))


def cmd_export(store: CalendarStore, args) -> None:
    args.output.write_text(export_events(store), encoding="utf-8")
    print(f"Events exported successfully to {args.output}")


def cmd_validate(store: CalendarStore, args) -> None:
    print(f"{len(store.get_all_events())} events imported from {args.snapshot}")


COMMANDS = {
    "print": cmd_print,
    "status": cmd_status,
    "export": cmd_export,
    "validate": cmd_validate,
}


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.load(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    configure_logging("DEBUG" if args.debug else config.logging.level, log_path=config.logging.file)

    name = args.calendar or config.default_calendar
    timezone = args.timezone or config.default_timezone

    try:
        text = args.snapshot.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: Snapshot file not found: {args.snapshot}", file=sys.stderr)
        return 1

    store = CalendarStore()
    try:
        store.create_calendar(name, timezone)
        store.use_calendar(name)
        count = import_events(store, name, text, strict=config.import_.strict)
        logger.debug("Loaded %d events from %s into %r", count, args.snapshot, name)
        COMMANDS[args.command](store, args)
    except CalendarError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
