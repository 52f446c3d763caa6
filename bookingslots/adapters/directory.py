"""
Business directory backed by the YAML application configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import AppConfig, BusinessConfig, DayScheduleConfig, WorkingHoursUpdate
from ..domain.exceptions import InvalidConfiguration
from ..domain.models import WEEKDAY_NAMES, WorkingHours

logger = logging.getLogger(__name__)


class ConfigBusinessDirectory:
    """
    Serves per-weekday working hours for the businesses listed in ``AppConfig``.
    """

    def __init__(self, config: AppConfig):
        self.config = config

    def _get_business(self, business_id: str) -> BusinessConfig:
        business = self.config.find_business(business_id)
        if business is None:
            raise InvalidConfiguration(f"Unknown business: '{business_id}'")
        return business

    async def get_working_hours(self, business_id: str, weekday: int) -> Optional[WorkingHours]:
        """Return the weekday's record, or None when the business has no hours configured."""
        schedule = self._get_business(business_id).schedule_for(weekday)
        if schedule is None:
            return None
        return schedule.to_domain()

    async def get_timezone(self, business_id: str) -> str:
        return self.config.timezone_for(self._get_business(business_id))

    def update_working_hours(
        self,
        business_id: str,
        weekday: int,
        update: WorkingHoursUpdate,
    ) -> DayScheduleConfig:
        """
        Apply a partial update to one weekday and store the validated result.

        Raises:
            InvalidConfiguration: If the business is unknown
            pydantic.ValidationError: If the merged schedule is invalid
        """
        business = self._get_business(business_id)
        day = WEEKDAY_NAMES[weekday]

        current = business.working_hours.get(day) if business.working_hours else None
        updated = update.apply(current)

        if business.working_hours is None:
            business.working_hours = {}
        business.working_hours[day] = updated

        logger.info("Updated %s working hours for business %s", day, business_id)
        return updated
