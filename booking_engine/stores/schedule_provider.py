"""Read-only source of businesses, staff, services and schedule overrides."""

import logging
from typing import Optional, Protocol

from booking_engine.schemas.schedule_schema import (
    Business,
    FeatureFlags,
    ScheduleOverride,
    Service,
    Staff,
)

logger = logging.getLogger(__name__)


class ScheduleProvider(Protocol):

    async def get_business(self, business_id: str) -> Business: ...

    async def get_staff(self, staff_id: str) -> Staff: ...

    async def get_service(self, service_id: str) -> Service: ...

    async def list_services(self, business_id: str) -> list[Service]: ...

    async def list_overrides(self, business_id: str) -> list[ScheduleOverride]: ...

    async def get_feature_flags(self, business_id: str) -> FeatureFlags: ...


class InMemoryScheduleProvider:
    """Holds schedule data in dicts; lookups of unknown ids raise KeyError."""

    def __init__(self) -> None:
        self.businesses: dict[str, Business] = {}
        self.staff: dict[str, Staff] = {}
        self.services: dict[str, Service] = {}
        self.overrides: list[ScheduleOverride] = []
        self.feature_flags: dict[str, FeatureFlags] = {}

    def add_business(self, business: Business, feature_flags: Optional[FeatureFlags] = None) -> None:
        self.businesses[business.id] = business
        if feature_flags is not None:
            self.feature_flags[business.id] = feature_flags

    def add_staff(self, staff: Staff) -> None:
        # Staff following business hours get a copy of them, not a live link
        if staff.uses_business_hours and staff.business_id in self.businesses:
            hours = self.businesses[staff.business_id].working_hours
            if hours is not None:
                staff = staff.model_copy(update={"schedule": hours.model_copy(deep=True)})
        self.staff[staff.id] = staff

    def add_service(self, service: Service) -> None:
        self.services[service.id] = service

    def add_override(self, override: ScheduleOverride) -> None:
        self.overrides.append(override)

    async def get_business(self, business_id: str) -> Business:
        return self.businesses[business_id]

    async def get_staff(self, staff_id: str) -> Staff:
        return self.staff[staff_id]

    async def get_service(self, service_id: str) -> Service:
        return self.services[service_id]

    async def list_services(self, business_id: str) -> list[Service]:
        return [s for s in self.services.values() if s.business_id == business_id]

    async def list_overrides(self, business_id: str) -> list[ScheduleOverride]:
        return [o for o in self.overrides if o.business_id == business_id]

    async def get_feature_flags(self, business_id: str) -> FeatureFlags:
        return self.feature_flags.get(business_id, FeatureFlags())
