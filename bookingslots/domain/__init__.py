"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflicts import ensure_no_conflict, find_conflicts
from .exceptions import BookingConflict, BookingSlotsError, InvalidConfiguration, InvalidInput
from .models import Break, Slot, SlotRequest, TimeRange, WorkingHours
from .slot_calculator import SlotCalculator, compute_available_slots

__all__ = [
    "Break",
    "BookingConflict",
    "BookingSlotsError",
    "InvalidConfiguration",
    "InvalidInput",
    "Slot",
    "SlotCalculator",
    "SlotRequest",
    "TimeRange",
    "WorkingHours",
    "compute_available_slots",
    "ensure_no_conflict",
    "find_conflicts",
]
