"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.models import WEEKDAY_NAMES, Break, WorkingHours, parse_clock_time


def _validate_timezone(value: str) -> str:
    try:
        pendulum.timezone(value)
    except Exception as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class DefaultsConfig(BaseModel):
    """Default settings for slot search."""
    duration_minutes: int = 60

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value


class BreakConfig(BaseModel):
    """A pause inside a working day."""
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "BreakConfig":
        """Ensure the break does not end before it starts."""
        if parse_clock_time(self.end_time) < parse_clock_time(self.start_time):
            raise ValueError(f"Break {self.start_time}-{self.end_time} ends before it starts")
        return self


class DayScheduleConfig(BaseModel):
    """Working hours for one weekday."""
    is_open: bool = True
    open_time: str = "09:00"
    close_time: str = "18:00"
    breaks: List[BreakConfig] = Field(default_factory=list)

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DayScheduleConfig":
        """Ensure an open day opens before it closes."""
        if self.is_open and parse_clock_time(self.close_time) <= parse_clock_time(self.open_time):
            raise ValueError("close_time must be later than open_time")
        return self

    def to_domain(self) -> WorkingHours:
        """Convert to the domain record consumed by the slot calculator."""
        return WorkingHours(
            is_open=self.is_open,
            open_time=self.open_time,
            close_time=self.close_time,
            breaks=tuple(Break(start_time=b.start_time, end_time=b.end_time) for b in self.breaks),
        )


class WorkingHoursUpdate(BaseModel):
    """
    Partial update of one weekday's working hours.

    Only the listed fields can change; anything else in the payload is
    rejected. The merged schedule is validated before it replaces the
    stored one.
    """
    model_config = ConfigDict(extra="forbid")

    is_open: Optional[bool] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    breaks: Optional[List[BreakConfig]] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_clock(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_clock_time(value)
        return value

    def apply(self, current: Optional[DayScheduleConfig]) -> DayScheduleConfig:
        """
        Merge this update into the current schedule.

        A weekday without a schedule starts from a closed day.

        Raises:
            pydantic.ValidationError: If the merged schedule is invalid
        """
        base = current if current is not None else DayScheduleConfig(is_open=False)
        merged = base.model_dump()
        merged.update(self.model_dump(exclude_none=True))
        return DayScheduleConfig(**merged)


class BusinessConfig(BaseModel):
    """A business and its weekly working hours."""
    id: str
    name: str = ""
    timezone: Optional[str] = None
    working_hours: Optional[Dict[str, DayScheduleConfig]] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _validate_timezone(value)

    @field_validator("working_hours")
    @classmethod
    def validate_weekdays(
        cls, value: Optional[Dict[str, DayScheduleConfig]]
    ) -> Optional[Dict[str, DayScheduleConfig]]:
        """Normalise weekday keys and reject unknown ones."""
        if value is None:
            return value

        normalized: Dict[str, DayScheduleConfig] = {}
        for day, schedule in value.items():
            key = day.strip().lower()
            if key not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday '{day}', expected one of {', '.join(WEEKDAY_NAMES)}")
            normalized[key] = schedule
        return normalized

    def display_name(self) -> str:
        """Get display name."""
        return self.name or self.id

    def schedule_for(self, weekday: int) -> Optional[DayScheduleConfig]:
        """
        Return the schedule for a weekday (Monday = 0).

        None means the business has no working hours configured at all; a
        weekday missing from a configured week is a closed day.
        """
        if self.working_hours is None:
            return None
        return self.working_hours.get(WEEKDAY_NAMES[weekday], DayScheduleConfig(is_open=False))


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    bookings_file: Optional[Path] = None
    businesses: List[BusinessConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _validate_timezone(value)

    @field_validator("businesses")
    @classmethod
    def validate_businesses(cls, value: List[BusinessConfig]) -> List[BusinessConfig]:
        """Ensure business ids are unique."""
        seen_ids: set[str] = set()
        for business in value:
            if business.id in seen_ids:
                raise ValueError(f"Duplicate business id detected: {business.id}")
            seen_ids.add(business.id)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative bookings paths are resolved against the config file location
        if config.bookings_file is not None and not config.bookings_file.is_absolute():
            config.bookings_file = config_path.parent / config.bookings_file

        return config

    def find_business(self, business_id: str) -> BusinessConfig | None:
        """Find a business by its id."""
        for business in self.businesses:
            if business.id == business_id:
                return business
        return None

    def timezone_for(self, business: BusinessConfig) -> str:
        """The business's own timezone, falling back to the global one."""
        return business.timezone or self.timezone


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
