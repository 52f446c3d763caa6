"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

import pendulum
import pytest

from bookingslots.domain.exceptions import BookingConflict, InvalidConfiguration, InvalidInput
from bookingslots.domain.models import Break, SlotRequest, TimeRange, WorkingHours
from bookingslots.services.availability import AvailabilityService

TZ = "Europe/Berlin"
MONDAY = pendulum.date(2025, 3, 3)


def _at(day: int, hour: int, minute: int = 0) -> pendulum.DateTime:
    return pendulum.datetime(2025, 3, day, hour, minute, tz=TZ)


class StubBusinessDirectory:
    """Minimal stub matching BusinessDirectoryProtocol."""

    def __init__(self, week: Optional[Dict[int, WorkingHours]], timezone: str = TZ):
        self._week = week
        self._timezone = timezone
        self.calls: List[tuple] = []

    async def get_working_hours(self, business_id, weekday):
        self.calls.append((business_id, weekday))
        if self._week is None:
            return None
        return self._week.get(weekday, WorkingHours.closed())

    async def get_timezone(self, business_id):
        return self._timezone


class StubBookingStore:
    """Minimal stub matching BookingStoreProtocol."""

    def __init__(self, intervals: List[TimeRange]):
        self._intervals = intervals
        self.calls: List[Dict[str, str]] = []

    async def get_booked_intervals(self, business_id, date, timezone):
        self.calls.append(
            {
                "business_id": business_id,
                "date": date.isoformat(),
                "timezone": timezone,
            }
        )
        return self._intervals


def _build_service(
    intervals: List[TimeRange],
    week: Optional[Dict[int, WorkingHours]] = None,
    now: Optional[pendulum.DateTime] = None,
):
    if week is None:
        week = {
            0: WorkingHours(is_open=True, open_time="09:00", close_time="18:00", breaks=(Break("13:00", "14:00"),)),
        }
    directory = StubBusinessDirectory(week)
    store = StubBookingStore(intervals)
    fixed_now = now or _at(1, 0)
    service = AvailabilityService(
        business_directory=directory,
        booking_store=store,
        clock=lambda tz: fixed_now.in_timezone(tz),
    )
    return service, directory, store


class TestFindSlots:

    def test_uses_directory_store_and_calculator(self):
        """End-to-end call should yield calculated slots in the business timezone."""
        service, directory, store = _build_service([TimeRange(start=_at(3, 10), end=_at(3, 11))])

        slots = asyncio.run(service.find_slots(SlotRequest("salon", MONDAY, 60)))

        assert [slot.start for slot in slots] == [
            _at(3, 9), _at(3, 11), _at(3, 12), _at(3, 14), _at(3, 15), _at(3, 16), _at(3, 17)
        ]
        assert directory.calls == [("salon", 0)]
        assert store.calls == [{"business_id": "salon", "date": "2025-03-03", "timezone": TZ}]

    def test_injected_clock_hides_past_slots(self):
        service, _, _ = _build_service([], now=_at(3, 15, 30))

        slots = asyncio.run(service.find_slots(SlotRequest("salon", MONDAY, 60)))

        assert [slot.start for slot in slots] == [_at(3, 16), _at(3, 17)]

    def test_unconfigured_business_raises(self):
        directory = StubBusinessDirectory(week=None)
        store = StubBookingStore([])
        service = AvailabilityService(directory, store, clock=lambda tz: _at(1, 0))

        with pytest.raises(InvalidConfiguration, match="not configured"):
            asyncio.run(service.find_slots(SlotRequest("salon", MONDAY, 60)))

        assert store.calls == []

    def test_closed_day_returns_empty_without_fetching_bookings(self):
        service, _, store = _build_service([])
        sunday = pendulum.date(2025, 3, 9)

        assert asyncio.run(service.find_slots(SlotRequest("salon", sunday, 60))) == []
        assert store.calls == []

    @pytest.mark.parametrize("duration", [0, -15, float("nan")])
    def test_invalid_duration_raises_before_any_lookup(self, duration):
        service, directory, store = _build_service([])

        with pytest.raises(InvalidInput):
            asyncio.run(service.find_slots(SlotRequest("salon", MONDAY, duration)))

        assert directory.calls == []
        assert store.calls == []

    def test_fetch_booked_intervals_drops_other_days(self):
        today = TimeRange(start=_at(3, 10), end=_at(3, 11))
        yesterday = TimeRange(start=_at(2, 10), end=_at(2, 11))
        overnight = TimeRange(start=_at(2, 23), end=_at(3, 1))
        service, _, _ = _build_service([today, yesterday, overnight])

        kept = asyncio.run(
            service.fetch_booked_intervals(business_id="salon", date=MONDAY, timezone=TZ)
        )

        assert kept == [today, overnight]


class TestCheckBooking:

    def test_free_interval_is_returned(self):
        service, _, _ = _build_service([TimeRange(start=_at(3, 10), end=_at(3, 11))])

        requested = asyncio.run(service.check_booking("salon", _at(3, 11), 30))

        assert requested == TimeRange(start=_at(3, 11), end=_at(3, 11, 30))

    def test_conflict_is_rejected(self):
        booked = TimeRange(start=_at(3, 9, 30), end=_at(3, 10, 30))
        service, _, _ = _build_service([booked])

        with pytest.raises(BookingConflict) as exc_info:
            asyncio.run(service.check_booking("salon", _at(3, 10), 60))

        assert exc_info.value.conflicts == [booked]

    def test_naive_start_is_read_in_business_timezone(self):
        booked = TimeRange(start=_at(3, 10), end=_at(3, 11))
        service, _, _ = _build_service([booked])

        with pytest.raises(BookingConflict):
            asyncio.run(service.check_booking("salon", datetime(2025, 3, 3, 10, 15), 15))

    def test_interval_over_midnight_checks_both_days(self):
        service, _, store = _build_service([])

        asyncio.run(service.check_booking("salon", _at(3, 23, 30), 60))

        assert [call["date"] for call in store.calls] == ["2025-03-03", "2025-03-04"]

    def test_invalid_duration(self):
        service, _, _ = _build_service([])

        with pytest.raises(InvalidInput):
            asyncio.run(service.check_booking("salon", _at(3, 10), 0))
