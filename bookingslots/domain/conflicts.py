"""
Booking conflict detection for the write path.

Availability shown to a client can go stale before the booking is stored,
so the writer re-checks the requested interval against the current bookings.
"""

from typing import Iterable, List

from .exceptions import BookingConflict
from .models import TimeRange


def find_conflicts(requested: TimeRange, booked: Iterable[TimeRange]) -> List[TimeRange]:
    """Return every booked interval overlapping the requested one, ordered by start."""
    return sorted(
        (existing for existing in booked if requested.overlaps(existing)),
        key=lambda r: r.start
    )


def ensure_no_conflict(requested: TimeRange, booked: Iterable[TimeRange]) -> None:
    """
    Raise if the requested interval overlaps any booked interval.

    Raises:
        BookingConflict: With the overlapping intervals attached
    """
    conflicts = find_conflicts(requested, booked)
    if conflicts:
        raise BookingConflict(requested, conflicts)
