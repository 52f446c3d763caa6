"""
Domain-specific exception hierarchy for the booking slot engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import TimeRange


class BookingSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidInput(BookingSlotsError, ValueError):
    """Raised for a bad duration, an unparseable time string or an inverted interval."""


class InvalidConfiguration(BookingSlotsError):
    """Raised when a business has no working-hours configuration at all."""


class BookingConflict(BookingSlotsError):
    """Raised when a requested appointment overlaps an existing booking."""

    def __init__(self, requested: "TimeRange", conflicts: Sequence["TimeRange"]):
        self.requested = requested
        self.conflicts = list(conflicts)
        super().__init__(
            f"Requested time {requested} overlaps {len(self.conflicts)} existing booking(s)"
        )
