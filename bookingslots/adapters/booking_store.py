"""
Booking store that reads appointments from a JSON file.
"""

import json
import logging
from datetime import date as Date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum

from ..domain.exceptions import InvalidInput
from ..domain.models import TimeRange, parse_clock_time

logger = logging.getLogger(__name__)

CANCELLED_STATUSES = frozenset({"cancelled", "canceled"})


class FileBookingStore:
    """
    Loads appointments from a JSON array of records such as::

        {"businessId": "salon", "startTime": "2025-03-03T12:00:00",
         "endTime": "2025-03-03T13:00:00", "status": "confirmed"}

    or, with wall-clock times on a given day::

        {"businessId": "salon", "date": "2025-03-03",
         "startTime": "12:00", "endTime": "13:00"}

    Timestamps without an offset are read in the business timezone.
    """

    def __init__(self, data_file: Optional[Path]):
        self.data_file = data_file
        self._load_appointments()

    def _load_appointments(self) -> None:
        """Load appointment records from the JSON file."""
        if self.data_file is None or not self.data_file.exists():
            logger.warning("Bookings file %s not found, assuming no bookings", self.data_file)
            self.appointments: List[Dict[str, Any]] = []
            return

        with open(self.data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"Bookings file {self.data_file} must contain a JSON array")

        self.appointments = data

    async def get_booked_intervals(
        self,
        business_id: str,
        date: Date,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Return intervals of non-cancelled appointments overlapping the calendar day.
        """
        day_start = pendulum.datetime(date.year, date.month, date.day, tz=timezone)
        day = TimeRange(start=day_start, end=day_start.add(days=1))

        intervals: List[TimeRange] = []

        for appointment in self.appointments:
            if appointment.get("businessId") != business_id:
                continue

            if str(appointment.get("status", "")).lower() in CANCELLED_STATUSES:
                continue

            try:
                interval = self._to_interval(appointment, timezone)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed appointment %r: %s", appointment, exc)
                continue

            if interval.overlaps(day):
                intervals.append(interval)

        return sorted(intervals, key=lambda r: r.start)

    @staticmethod
    def _to_interval(appointment: Dict[str, Any], timezone: str) -> TimeRange:
        if "date" in appointment:
            # "date" may be a bare day or a full timestamp at midnight
            day = pendulum.parse(str(appointment["date"]), tz=timezone).date()
            start = FileBookingStore._on_day(day, appointment["startTime"], timezone)
            end = FileBookingStore._on_day(day, appointment["endTime"], timezone)
        else:
            start = pendulum.parse(appointment["startTime"], tz=timezone)
            end = pendulum.parse(appointment["endTime"], tz=timezone)

        return TimeRange(start=start, end=end)

    @staticmethod
    def _on_day(day: Date, value: str, timezone: str) -> pendulum.DateTime:
        """Place an ``HH:MM`` time on the given day; full timestamps are taken as they are."""
        try:
            clock = parse_clock_time(value)
        except InvalidInput:
            return pendulum.parse(value, tz=timezone)

        return pendulum.datetime(day.year, day.month, day.day, clock.hour, clock.minute, tz=timezone)
