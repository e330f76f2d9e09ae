"""Working-hours, override and business data models."""

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from booking_engine.utils import DAY_KEYS, parse_date, parse_time


class Shift(BaseModel):
    """One contiguous working interval ``[start, end)`` in minutes of the day."""
    start: int
    end: int

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    @model_validator(mode="after")
    def _check_order(self) -> "Shift":
        # Shifts crossing midnight are not supported
        if self.start >= self.end:
            raise ValueError(f"Shift start must be before end, got {self.start} >= {self.end}")
        return self


class DayPlan(BaseModel):
    """Working plan for a single day of the week."""
    enabled: bool = False
    shifts: list[Shift] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_hours(cls, data: Any) -> Any:
        """Rows written before shift lists existed carry scalar ``start``/``end``."""
        if isinstance(data, dict) and not data.get("shifts"):
            start, end = data.get("start"), data.get("end")
            if start is not None and end is not None:
                data = {**data, "shifts": [{"start": start, "end": end}]}
        return data


class WorkingHours(BaseModel):
    """Weekly recurring schedule keyed by weekday name."""
    model_config = ConfigDict(extra="forbid")

    sunday: Optional[DayPlan] = None
    monday: Optional[DayPlan] = None
    tuesday: Optional[DayPlan] = None
    wednesday: Optional[DayPlan] = None
    thursday: Optional[DayPlan] = None
    friday: Optional[DayPlan] = None
    saturday: Optional[DayPlan] = None

    def for_day(self, key: str) -> Optional[DayPlan]:
        if key not in DAY_KEYS:
            raise KeyError(f"Unknown weekday key: {key!r}")
        return getattr(self, key)

    def is_empty(self) -> bool:
        return all(getattr(self, key) is None for key in DAY_KEYS)


class ScheduleOverride(BaseModel):
    """Date-specific replacement of the weekly schedule.

    ``staff_id=None`` applies the override to every staff member of the business.
    """
    id: Optional[str] = None
    business_id: str
    date: dt.date
    staff_id: Optional[str] = None
    is_day_off: bool = False
    shifts: list[Shift] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_date(value)


class Business(BaseModel):
    """Business record with the policy fields the engine consults."""
    id: str
    name: str = ""
    working_hours: Optional[WorkingHours] = None
    # None means "never set" and is treated as enabled
    require_approval_for_new_clients: Optional[bool] = None
    cancellation_hours_limit: Optional[int] = None
    booking_window_enabled: bool = False
    booking_window_days: Optional[PositiveInt] = None


class Staff(BaseModel):
    """Staff member with an own copy of working hours."""
    id: str
    business_id: str
    name: str = ""
    schedule: Optional[WorkingHours] = None
    uses_business_hours: bool = False


class Service(BaseModel):
    """Bookable service."""
    id: str
    business_id: str
    name: str = ""
    duration: PositiveInt
    price: float = 0.0
    color: Optional[str] = None


class FeatureFlags(BaseModel):
    """Plan features that gate parts of the booking flow."""
    new_client_approval: bool = False
    recurring_bookings: bool = False
    waiting_list: bool = False
