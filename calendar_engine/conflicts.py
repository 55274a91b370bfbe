"""
Conflict detection between calendar events.

Intervals are half-open: [s1, e1) and [s2, e2) conflict iff s1 < e2 and
s2 < e1, so an event ending at 10:00 never conflicts with one starting at
10:00. Anything with .start and .end attributes can be checked.
"""

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .interval_tree import IntervalTree


class Interval(Protocol):
    start: datetime
    end: datetime


def overlaps(first: Interval, second: Interval) -> bool:
    return first.start < second.end and second.start < first.end


def conflicts(candidate: Interval, existing: Iterable[Interval]) -> bool:
    """True if candidate overlaps any of the existing intervals."""
    return any(overlaps(candidate, other) for other in existing)


def first_conflict(candidate: Interval, existing: Iterable[Interval],
                   ignore: Optional[Interval] = None) -> Optional[Interval]:
    """The first existing interval overlapping candidate, skipping `ignore` by identity."""
    for other in existing:
        if other is not ignore and overlaps(candidate, other):
            return other
    return None


def find_conflicts(
    candidates: Sequence[Interval],
    existing: Iterable[Interval],
    check_each_other: bool = True,
) -> list[tuple[Interval, Interval]]:
    """
    Check many candidates against a calendar in one pass.

    Builds an interval tree over the existing events, then queries it for
    every candidate. With check_each_other, candidates that pass are added to
    the tree so later candidates are also checked against earlier ones.

    Returns:
        (candidate, conflicting_interval) pairs, one per conflicting candidate,
        in candidate order. Empty when everything fits.
    """
    tree: IntervalTree[datetime] = IntervalTree((e.start, e.end, e) for e in existing)
    found: list[tuple[Interval, Interval]] = []

    for candidate in candidates:
        hits = tree.intersecting(candidate.start, candidate.end)
        if hits:
            found.append((candidate, hits[0]))
        elif check_each_other:
            tree.insert(candidate.start, candidate.end, candidate)

    return found


def events_at(instant: datetime, events: Iterable[Interval]) -> list[Interval]:
    """Events whose [start, end) contains instant, in their original order."""
    return [e for e in events if e.start <= instant < e.end]
