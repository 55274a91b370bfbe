"""Tests for calendar_engine/conflicts.py

Intervals are half-open, so back-to-back events never conflict.
"""

from datetime import datetime

from calendar_engine.conflicts import conflicts, events_at, find_conflicts, first_conflict, overlaps
from calendar_engine.models import Event


def ev(name, start_hour, end_hour, day=1):
    return Event(name, datetime(2025, 5, day, start_hour), datetime(2025, 5, day, end_hour))


# ─────────────────────────────────────────────────────────────────────────────
# Pairwise Overlap Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestOverlaps:
    """Tests for the half-open overlap predicate."""

    def test_touching_intervals_do_not_overlap(self):
        """[9,10) and [10,11) share no instant."""
        assert not overlaps(ev("a", 9, 10), ev("b", 10, 11))
        assert not overlaps(ev("b", 10, 11), ev("a", 9, 10))

    def test_partial_overlap(self):
        """[9,11) and [10,12) overlap."""
        assert overlaps(ev("a", 9, 11), ev("b", 10, 12))

    def test_containment(self):
        """An interval inside another overlaps it."""
        assert overlaps(ev("outer", 8, 18), ev("inner", 12, 13))

    def test_symmetry(self):
        """Overlap is symmetric."""
        pairs = [(ev("a", 9, 11), ev("b", 10, 12)), (ev("a", 9, 10), ev("b", 11, 12))]
        for a, b in pairs:
            assert overlaps(a, b) == overlaps(b, a)

    def test_conflicts_any(self):
        """conflicts() is true if any existing interval overlaps."""
        existing = [ev("a", 8, 9), ev("b", 12, 13)]
        assert conflicts(ev("c", 12, 14), existing)
        assert not conflicts(ev("c", 9, 12), existing)

    def test_first_conflict_ignores_self(self):
        """An event never conflicts with itself when passed as ignore."""
        event = ev("a", 9, 10)
        assert first_conflict(event, [event], ignore=event) is None
        assert first_conflict(event, [event]) is event


# ─────────────────────────────────────────────────────────────────────────────
# Batch Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestFindConflicts:
    """Tests for checking many candidates in one pass."""

    def test_against_existing(self):
        """Each conflicting candidate is reported with the event it hits."""
        existing = [ev("standup", 9, 10), ev("lunch", 12, 13)]
        candidates = [ev("x", 9, 11), ev("y", 10, 12), ev("z", 12, 14, day=2)]

        found = find_conflicts(candidates, existing)

        assert [(c.name, hit.name) for c, hit in found] == [("x", "standup")]

    def test_candidates_against_each_other(self):
        """Later candidates are checked against earlier ones."""
        candidates = [ev("first", 9, 11), ev("second", 10, 12)]

        found = find_conflicts(candidates, [])

        assert [(c.name, hit.name) for c, hit in found] == [("second", "first")]

    def test_candidates_independent(self):
        """check_each_other=False only checks against existing events."""
        candidates = [ev("first", 9, 11), ev("second", 10, 12)]
        assert find_conflicts(candidates, [], check_each_other=False) == []

    def test_matches_pairwise_check(self):
        """The tree agrees with the pairwise predicate."""
        existing = [ev(f"e{h}", h, h + 2) for h in range(0, 22, 3)]
        for start in range(0, 23):
            candidate = ev("c", start, start + 1)
            expected = conflicts(candidate, existing)
            assert bool(find_conflicts([candidate], existing)) == expected


class TestEventsAt:
    """Tests for point-in-time lookup."""

    def test_start_inclusive_end_exclusive(self):
        """An event is in progress at its start but not at its end."""
        event = ev("a", 9, 10)
        assert events_at(datetime(2025, 5, 1, 9), [event]) == [event]
        assert events_at(datetime(2025, 5, 1, 9, 59), [event]) == [event]
        assert events_at(datetime(2025, 5, 1, 10), [event]) == []
