"""
Application services for finding bookable slots and re-validating bookings.

The service coordinates fetching working hours and booked intervals via
collaborator adapters and delegates the actual slot calculation to the
domain-level ``SlotCalculator``. Collaborators are described by simple
protocols so the CLI, a web handler or a test can plug in its own.
"""

from __future__ import annotations

import logging
from datetime import date as Date
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..domain.conflicts import ensure_no_conflict
from ..domain.exceptions import BookingConflict, InvalidConfiguration
from ..domain.models import Slot, SlotRequest, TimeRange, WorkingHours, weekday_name
from ..domain.slot_calculator import SlotCalculator, validate_duration

logger = logging.getLogger(__name__)


class BusinessDirectoryProtocol(Protocol):
    """Protocol describing the business directory behaviour needed by the service."""

    async def get_working_hours(self, business_id: str, weekday: int) -> Optional[WorkingHours]:
        """Return the record for a weekday (Monday = 0), or None if none is configured."""

    async def get_timezone(self, business_id: str) -> str:
        """Return the IANA timezone the business keeps its hours in."""


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking store behaviour needed by the service."""

    async def get_booked_intervals(
        self,
        business_id: str,
        date: Date,
        timezone: str,
    ) -> List[TimeRange]:
        """Return intervals of non-cancelled appointments on that calendar date."""


class AvailabilityService:
    """
    Orchestrates working-hours lookup, booking retrieval and slot calculation.

    The business id is always passed in explicitly and nothing is cached
    between calls.
    """

    def __init__(
        self,
        business_directory: BusinessDirectoryProtocol,
        booking_store: BookingStoreProtocol,
        clock: Callable[[str], DateTime] = pendulum.now,
    ) -> None:
        self._business_directory = business_directory
        self._booking_store = booking_store
        self._clock = clock

    async def find_slots(self, request: SlotRequest) -> List[Slot]:
        """
        Resolve working hours and bookings for the request, then compute slots.

        Raises:
            InvalidInput: If the requested duration is not usable
            InvalidConfiguration: If the business has no working hours configured
        """
        duration = validate_duration(request.duration_minutes)
        timezone = await self._business_directory.get_timezone(request.business_id)

        working_hours = await self._business_directory.get_working_hours(
            request.business_id,
            request.date.weekday(),
        )

        if working_hours is None:
            raise InvalidConfiguration(
                f"Business '{request.business_id}' has not configured its working hours yet"
            )

        if not working_hours.is_open:
            logger.debug(
                "Business %s is closed on %s", request.business_id, weekday_name(request.date)
            )
            return []

        booked_intervals = await self.fetch_booked_intervals(
            business_id=request.business_id,
            date=request.date,
            timezone=timezone,
        )

        calculator = SlotCalculator(timezone=timezone)
        slots = calculator.find_available_slots(
            date=request.date,
            working_hours=working_hours,
            duration_minutes=duration,
            booked_intervals=booked_intervals,
            now=self._clock(timezone),
        )

        logger.debug(
            "Found %d slot(s) of %d min for business %s on %s",
            len(slots),
            duration,
            request.business_id,
            request.date.isoformat(),
        )
        return slots

    async def check_booking(
        self,
        business_id: str,
        start: datetime,
        duration_minutes: int,
    ) -> TimeRange:
        """
        Re-validate a booking request against the bookings stored right now.

        Returns the requested interval when it is free. A conflict must be
        treated as a rejection: the caller re-runs ``find_slots`` and offers
        the updated list instead of storing the appointment.

        Raises:
            InvalidInput: If the requested duration is not usable
            BookingConflict: If the interval overlaps an existing booking
        """
        duration = validate_duration(duration_minutes)
        timezone = await self._business_directory.get_timezone(business_id)

        requested_start = pendulum.instance(start, tz=timezone)
        requested = TimeRange(
            start=requested_start,
            end=requested_start.add(minutes=duration),
        )

        booked: List[TimeRange] = []
        for day in self._days_touched(requested, timezone):
            booked.extend(
                await self.fetch_booked_intervals(
                    business_id=business_id,
                    date=day,
                    timezone=timezone,
                )
            )

        try:
            ensure_no_conflict(requested, booked)
        except BookingConflict:
            logger.info("Rejected booking for business %s at %s", business_id, requested)
            raise

        return requested

    async def fetch_booked_intervals(
        self,
        *,
        business_id: str,
        date: Date,
        timezone: str,
    ) -> List[TimeRange]:
        """Fetch booked intervals for a day and drop anything outside that day."""
        intervals = await self._booking_store.get_booked_intervals(
            business_id,
            date,
            timezone,
        )

        return self._restrict_to_day(intervals, date, timezone)

    @staticmethod
    def _restrict_to_day(
        intervals: Iterable[TimeRange],
        date: Date,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Keep only intervals overlapping the calendar day.

        Stores are expected to filter by date already; anything else they
        return is logged and ignored.
        """
        day_start = pendulum.datetime(date.year, date.month, date.day, tz=timezone)
        day = TimeRange(start=day_start, end=day_start.add(days=1))

        kept: List[TimeRange] = []
        for interval in intervals:
            if interval.overlaps(day):
                kept.append(interval)
            else:
                logger.debug("Ignoring booked interval %s outside %s", interval, date.isoformat())

        return kept

    @staticmethod
    def _days_touched(requested: TimeRange, timezone: str) -> List[Date]:
        """Calendar days (in the business timezone) covered by an interval."""
        first = requested.start.in_timezone(timezone).date()
        last = requested.end.subtract(microseconds=1).in_timezone(timezone).date()

        days: List[Date] = []
        current = first
        while current <= last:
            days.append(current)
            current = current.add(days=1)

        return days
