"""
Tests for write-path conflict detection.
"""

import pendulum
import pytest

from bookingslots.domain.conflicts import ensure_no_conflict, find_conflicts
from bookingslots.domain.exceptions import BookingConflict
from bookingslots.domain.models import TimeRange


def _range(start_hour: float, end_hour: float) -> TimeRange:
    base = pendulum.datetime(2025, 3, 3, tz="UTC")
    return TimeRange(
        start=base.add(minutes=int(start_hour * 60)),
        end=base.add(minutes=int(end_hour * 60))
    )


class TestFindConflicts:
    """The three overlap shapes the booking writer has to catch."""

    def test_requested_starts_inside_booking(self):
        assert find_conflicts(_range(10.5, 11.5), [_range(10, 11)]) == [_range(10, 11)]

    def test_requested_ends_inside_booking(self):
        assert find_conflicts(_range(9.5, 10.5), [_range(10, 11)]) == [_range(10, 11)]

    def test_requested_contains_booking(self):
        assert find_conflicts(_range(9, 12), [_range(10, 11)]) == [_range(10, 11)]

    def test_adjacent_bookings_are_free(self):
        assert find_conflicts(_range(10, 11), [_range(9, 10), _range(11, 12)]) == []

    def test_conflicts_sorted_by_start(self):
        booked = [_range(11, 12), _range(9, 10.5)]

        assert find_conflicts(_range(10, 11.5), booked) == [_range(9, 10.5), _range(11, 12)]


class TestEnsureNoConflict:

    def test_free_interval_passes(self):
        ensure_no_conflict(_range(10, 11), [_range(11, 12)])

    def test_conflict_raises_with_details(self):
        requested = _range(10, 11)

        with pytest.raises(BookingConflict) as exc_info:
            ensure_no_conflict(requested, [_range(10.5, 12), _range(14, 15)])

        assert exc_info.value.requested == requested
        assert exc_info.value.conflicts == [_range(10.5, 12)]
