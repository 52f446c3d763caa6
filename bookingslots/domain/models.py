"""
Domain models for working hours, booked intervals and bookable slots.
"""

import re
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Dict, Tuple

from pendulum import DateTime

from .exceptions import InvalidInput

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_CLOCK_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_clock_time(value: str) -> time:
    """
    Parse an ``HH:MM`` wall-clock string into a ``time``.

    Raises:
        InvalidInput: If the value is not a valid 24-hour clock time
    """
    if not isinstance(value, str):
        raise InvalidInput(f"Time must be a string in HH:MM format, got {value!r}")

    match = _CLOCK_TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidInput(f"Time '{value}' is not in HH:MM format")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidInput(f"Time '{value}' is out of range")

    return time(hour=hour, minute=minute)


def weekday_name(day: date) -> str:
    """Return the lower-case English weekday name used in configuration files."""
    return WEEKDAY_NAMES[day.weekday()]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        """Check if the other range lies entirely within this one."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class Break:
    """A pause inside a working day, as raw ``HH:MM`` strings."""
    start_time: str
    end_time: str


@dataclass(frozen=True)
class WorkingHours:
    """
    Working-hours record for one business on one weekday.

    Times stay as raw strings; the slot calculator parses them only when the
    day is open, so a closed day never fails on stale values.
    """
    is_open: bool
    open_time: str = "09:00"
    close_time: str = "18:00"
    breaks: Tuple[Break, ...] = field(default_factory=tuple)

    @classmethod
    def closed(cls) -> "WorkingHours":
        """A record for a day the business does not open."""
        return cls(is_open=False)


@dataclass(frozen=True)
class Slot:
    """
    A bookable slot of exactly the requested service duration.
    """
    time_range: TimeRange

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def duration_minutes(self) -> int:
        return self.time_range.duration_minutes()

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:MM - HH:MM (N min)
        """
        weekday = weekday_name(self.start).capitalize()
        date_str = self.start.format("YYYY-MM-DD")
        time_str = f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')}"

        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes()} min)"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form handed to the request layer."""
        return {
            "time": self.start.format("HH:mm"),
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "timestamp": self.start.int_timestamp * 1000,
        }


@dataclass(frozen=True)
class SlotRequest:
    """A single availability query. Not persisted."""
    business_id: str
    date: date
    duration_minutes: int
