"""
Core business logic for calculating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import math
import numbers
from datetime import date as Date
from datetime import time
from typing import Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInput
from .models import Break, Slot, TimeRange, WorkingHours, parse_clock_time


def validate_duration(duration_minutes) -> int:
    """
    Validate a requested service duration and return it as whole minutes.

    Raises:
        InvalidInput: If the duration is not a finite, positive, whole number
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, numbers.Real):
        raise InvalidInput(f"Duration must be a number of minutes, got {duration_minutes!r}")

    if not math.isfinite(duration_minutes):
        raise InvalidInput(f"Duration must be finite, got {duration_minutes!r}")

    if duration_minutes <= 0:
        raise InvalidInput(f"Duration must be greater than zero, got {duration_minutes!r}")

    if int(duration_minutes) != duration_minutes:
        raise InvalidInput(f"Duration must be a whole number of minutes, got {duration_minutes!r}")

    return int(duration_minutes)


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    sorted_ranges = sorted(ranges, key=lambda r: r.start)
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        if current.start <= last.end:
            merged[-1] = TimeRange(
                start=last.start,
                end=max(last.end, current.end)
            )
        else:
            merged.append(current)

    return merged


def subtract_breaks(window: TimeRange, breaks: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Subtract break ranges from an open window, yielding the open sub-windows.

    Breaks are clipped to the window, then sorted and merged, so unsorted or
    overlapping input never produces a negative-length sub-window.

    Example:
    Window: 09:00 - 18:00
    Breaks: [13:00-14:00]
    Result: [09:00-13:00, 14:00-18:00]
    """
    clipped = [
        clipped_break
        for clipped_break in (window.intersect(b) for b in breaks)
        if clipped_break is not None
    ]

    sub_windows: List[TimeRange] = []
    current_start = window.start

    for pause in merge_ranges(clipped):
        if current_start < pause.start:
            sub_windows.append(TimeRange(start=current_start, end=pause.start))

        current_start = max(current_start, pause.end)

    if current_start < window.end:
        sub_windows.append(TimeRange(start=current_start, end=window.end))

    return sub_windows


class SlotCalculator:
    """
    Calculates bookable slots for one business day.

    Algorithm:
    1. Build the day's open window from the working hours
    2. Subtract breaks to get the open sub-windows
    3. Walk each sub-window in steps of the service duration
    4. Reject candidates overlapping any booked interval (half-open)
    5. Reject candidates starting before "now"
    6. Return survivors in ascending start order
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone

    def find_available_slots(
        self,
        date: Date,
        working_hours: Optional[WorkingHours],
        duration_minutes: int,
        booked_intervals: Iterable[TimeRange],
        now: Optional[DateTime] = None
    ) -> List[Slot]:
        """
        Find all bookable slots for a single day.

        Args:
            date: The calendar day; any time-of-day component is ignored
            working_hours: The record for the date's weekday, or None
            duration_minutes: Requested service duration
            booked_intervals: Already-booked intervals for that business and day
            now: Current moment; slots starting before it are not offered

        Returns:
            List of Slot objects in ascending start order

        Raises:
            InvalidInput: For a bad duration or malformed working hours
        """
        if working_hours is None or not working_hours.is_open:
            return []

        duration = validate_duration(duration_minutes)

        windows = self.open_windows(date, working_hours)
        if not windows:
            return []

        if now is None:
            now = pendulum.now(self.timezone)
        else:
            # A naive "now" is read as wall-clock time in the calculator's timezone
            now = pendulum.instance(now, tz=self.timezone)

        # Bookings wholly outside the working day can never reject a candidate
        day_window = TimeRange(start=windows[0].start, end=windows[-1].end)
        relevant_bookings = [
            booked for booked in booked_intervals
            if booked.overlaps(day_window)
        ]

        slots: List[Slot] = []

        for window in windows:
            for candidate in self._walk_window(window, duration):
                if candidate.start < now:
                    continue

                if any(candidate.overlaps(booked) for booked in relevant_bookings):
                    continue

                slots.append(Slot(time_range=candidate))

        return slots

    def open_windows(self, date: Date, working_hours: Optional[WorkingHours]) -> List[TimeRange]:
        """
        Build the open sub-windows of a day: working hours minus breaks.

        Returns an empty list for a closed day or when breaks cover the
        whole window.
        """
        if working_hours is None or not working_hours.is_open:
            return []

        open_at = self._at(date, parse_clock_time(working_hours.open_time))
        close_at = self._at(date, parse_clock_time(working_hours.close_time))

        if open_at >= close_at:
            raise InvalidInput(
                f"Opening time {working_hours.open_time} must be before "
                f"closing time {working_hours.close_time}"
            )

        window = TimeRange(start=open_at, end=close_at)
        breaks = [
            break_range
            for break_range in (self._break_range(date, b) for b in working_hours.breaks)
            if break_range is not None
        ]

        return subtract_breaks(window, breaks)

    def _break_range(self, date: Date, pause: Break) -> Optional[TimeRange]:
        """Convert a break into a range on the given day. Zero-length breaks yield None."""
        start = self._at(date, parse_clock_time(pause.start_time))
        end = self._at(date, parse_clock_time(pause.end_time))

        if end < start:
            raise InvalidInput(
                f"Break end {pause.end_time} must not be before break start {pause.start_time}"
            )

        if end == start:
            return None

        return TimeRange(start=start, end=end)

    def _at(self, date: Date, clock: time) -> DateTime:
        """Combine a calendar day with a wall-clock time in the calculator's timezone."""
        return pendulum.datetime(
            date.year,
            date.month,
            date.day,
            clock.hour,
            clock.minute,
            tz=self.timezone
        )

    @staticmethod
    def _walk_window(window: TimeRange, duration: int) -> List[TimeRange]:
        """Cut a window into consecutive, non-overlapping candidates of ``duration`` minutes."""
        candidates: List[TimeRange] = []
        current = window.start

        while current.add(minutes=duration) <= window.end:
            end = current.add(minutes=duration)
            candidates.append(TimeRange(start=current, end=end))
            current = end

        return candidates


def compute_available_slots(
    date: Date,
    working_hours: Optional[WorkingHours],
    duration_minutes: int,
    booked_intervals: Iterable[TimeRange],
    *,
    now: Optional[DateTime] = None,
    timezone: str = "UTC"
) -> List[Slot]:
    """Compute the ordered list of bookable slots for one business day."""
    calculator = SlotCalculator(timezone=timezone)
    return calculator.find_available_slots(
        date=date,
        working_hours=working_hours,
        duration_minutes=duration_minutes,
        booked_intervals=booked_intervals,
        now=now
    )
