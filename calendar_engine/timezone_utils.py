"""
Timezone utilities for the calendar engine.

Event times are stored as naive wall-clock datetimes in their calendar's
timezone. These helpers validate zone names and move wall-clock times
between zones while keeping the absolute instant they denote.
"""

from datetime import datetime, timedelta

import pytz

from .errors import InvalidTimezoneError, ValidationError


def get_timezone(timezone_name: str):
    """
    Resolve an IANA timezone name to a pytz timezone object.

    Raises:
        InvalidTimezoneError: if the name cannot be resolved.
    """
    if not timezone_name or not isinstance(timezone_name, str):
        raise InvalidTimezoneError(timezone_name)
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        raise InvalidTimezoneError(timezone_name) from None


def validate_timezone(timezone_name: str) -> str:
    """Return the canonical zone name, raising InvalidTimezoneError if unknown."""
    return get_timezone(timezone_name).zone


def to_utc_datetime(dt: datetime, timezone_name: str) -> datetime:
    """
    Convert a naive wall-clock datetime in the given zone to aware UTC.

    Ambiguous or non-existent local times (DST transitions) resolve to the
    standard-time reading.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC)
    local_tz = get_timezone(timezone_name)
    return local_tz.localize(dt, is_dst=False).astimezone(pytz.UTC)


def shift_wall_clock(dt: datetime, from_zone: str, to_zone: str) -> datetime:
    """
    Re-express a naive wall-clock time from one zone in another zone.

    The result is naive and denotes the same absolute instant, e.g.
    10:00 in America/New_York becomes 15:00 in Europe/London in winter.
    """
    if from_zone == to_zone:
        return dt
    target_tz = get_timezone(to_zone)
    return to_utc_datetime(dt, from_zone).astimezone(target_tz).replace(tzinfo=None)


def zone_offset_between(dt: datetime, from_zone: str, to_zone: str) -> timedelta:
    """
    How far a wall-clock reading moves when dt is re-expressed in to_zone.

    Adding the result to any wall-clock time near dt converts it between the
    two zones without re-reading the DST rules for the new date.
    """
    return shift_wall_clock(dt, from_zone, to_zone) - dt


def require_naive(value, label: str = "date/time"):
    """Return value unchanged, raising ValidationError if it carries a UTC offset."""
    if value is not None and value.tzinfo is not None:
        raise ValidationError(f"The {label} must not carry a timezone offset: {value.isoformat()}")
    return value


def to_wall_clock(dt: datetime, timezone_name: str) -> datetime:
    """
    Express dt as a naive wall-clock time in the given zone.

    Naive values are already wall-clock readings and come back as they are;
    aware values are converted to the zone and stripped of their tzinfo.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_timezone(timezone_name)).replace(tzinfo=None)
