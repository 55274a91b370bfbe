"""
Recurrence expansion.

Turns a recurring EventSpec (weekdays plus a count or end-date rule) into
the concrete, materialized list of occurrences.
"""

import logging
from datetime import datetime, timedelta

from .errors import ValidationError
from .models import Event, EventSpec, Weekday

logger = logging.getLogger(__name__)


def expand_recurrence(spec: EventSpec) -> list[Event]:
    """
    Walk forward one day at a time from the template's start date and emit
    an occurrence on every requested weekday until the termination rule is
    met: `recurrence_count` occurrences, or the first date past
    `recurrence_end_date`.

    Every occurrence keeps the template's start and end time of day and is
    marked as part of a recurrence. The template is expected to have been
    checked with validate_spec(); an empty weekday set is rejected here too.
    """
    weekdays = spec.weekdays
    if not weekdays:
        raise ValidationError("Recurrence days must be provided for recurring events.")

    count = spec.recurrence_count
    end_date = spec.end_date
    if count is None and end_date is None:
        raise ValidationError("A recurring event needs a recurrence count or end date.")

    start_time = spec.start.time()
    end_time = spec.end.time()
    current = spec.start.date()
    occurrences: list[Event] = []

    while True:
        if count is not None:
            if len(occurrences) >= count:
                break
        elif current > end_date:
            break

        if Weekday.of(current) in weekdays:
            occurrences.append(Event(
                name=spec.name,
                start=datetime.combine(current, start_time),
                end=datetime.combine(current, end_time),
                description=spec.description or "",
                location=spec.location or "",
                is_public=spec.is_public,
                is_part_of_recurrence=True,
                recurrence_days=weekdays,
                auto_decline=spec.auto_decline,
            ))
        try:
            current += timedelta(days=1)
        except OverflowError:
            # Walked off date.max: an end-date rule is complete, a count rule is not
            if count is None:
                break
            raise ValidationError("Recurrence runs past the last supported date.") from None

    logger.debug("Expanded %r into %d occurrences", spec.name, len(occurrences))
    return occurrences
