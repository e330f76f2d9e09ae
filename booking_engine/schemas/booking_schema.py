"""Booking, recurring rule and waiting-list data models."""

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, PositiveInt, ValidationInfo, field_validator

from booking_engine.config import settings
from booking_engine.utils import format_time, parse_date, parse_time


class BookingStatus(str, Enum):
    """Lifecycle status of a booking row."""
    CONFIRMED = "confirmed"
    PENDING_APPROVAL = "pending_approval"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Only these statuses occupy calendar time
ACTIVE_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.PENDING_APPROVAL})

# Statuses that count as "booking history" for approval decisions
HISTORY_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.COMPLETED})


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"

    @property
    def step_days(self) -> int:
        return 7 if self is Frequency.WEEKLY else 14


class Booking(BaseModel):
    """A booking row as held by the booking store."""
    id: Optional[str] = None
    business_id: str
    staff_id: str
    service_id: str
    client_phone: str = ""
    client_name: str = ""
    service_name: str = ""
    staff_name: str = ""
    date: dt.date
    time: int
    duration: PositiveInt
    status: BookingStatus = BookingStatus.CONFIRMED
    notes: str = ""
    is_first_booking: bool = False
    booked_by_owner: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_date(value)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    @field_validator("duration", mode="before")
    @classmethod
    def _default_duration(cls, value: Any) -> Any:
        if value is None:
            return settings.slots.default_booking_duration
        return value

    @property
    def start(self) -> int:
        return self.time

    @property
    def end(self) -> int:
        return self.time + self.duration

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def time_label(self) -> str:
        return format_time(self.time)


class SlotCandidate(BaseModel):
    """A proposed appointment interval for one staff member."""
    date: dt.date
    time: int
    duration: PositiveInt
    staff_id: str

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_date(value)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    @property
    def end(self) -> int:
        return self.time + self.duration


class BookingRequest(BaseModel):
    """Validated booking request coming from the client or owner flow."""
    business_id: str
    staff_id: str
    service_id: str
    client_phone: str
    client_name: str = ""
    date: dt.date
    time: int
    notes: str = ""
    booked_by_owner: bool = False
    # One id per submission attempt; retries of the same request reuse it
    submission_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_date(value)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    def action_key(self) -> str:
        """Key identifying this logical submission for duplicate detection."""
        return "|".join([
            "create", self.business_id, self.staff_id, self.client_phone,
            self.date.isoformat(), format_time(self.time),
        ])

    def idempotency_key(self) -> str:
        """Store key for this attempt. A later request for the same slot gets a new one."""
        return f"{self.action_key()}|{self.submission_id}"


class RecurringAppointment(BaseModel):
    """Rule that materializes independent booking rows on a fixed weekday."""
    id: Optional[str] = None
    business_id: str
    client_name: str = ""
    client_phone: str = ""
    service_id: str
    service_name: str = ""
    staff_id: str
    staff_name: str = ""
    day_of_week: int  # 0 = Sunday
    time: int
    duration: PositiveInt
    frequency: Frequency = Frequency.WEEKLY
    biweekly_start_date: Optional[dt.date] = None
    is_active: bool = True
    last_booking_date: Optional[dt.date] = None

    @field_validator("biweekly_start_date", "last_booking_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return parse_date(value)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    @field_validator("day_of_week")
    @classmethod
    def _check_day_of_week(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {value}")
        return value


class WaitingListStatus(str, Enum):
    WAITING = "waiting"
    NOTIFIED = "notified"


_WAITING_LIST_DEFAULTS: dict[str, Optional[int]] = {
    "from_time": 0,
    "to_time": 23 * 60 + 59,
    "service_duration": 30,
    "notified_time": None,
}


class WaitingListEntry(BaseModel):
    """Client waiting for a slot to open on a given date."""
    id: Optional[str] = None
    business_id: str
    date: dt.date
    client_name: str = ""
    client_phone: str = ""
    service_name: str = ""
    service_duration: PositiveInt = 30
    from_time: int = 0
    to_time: int = 23 * 60 + 59
    status: WaitingListStatus = WaitingListStatus.WAITING
    notified_time: Optional[int] = None

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_date(value)

    @field_validator("from_time", "to_time", "notified_time", "service_duration", mode="before")
    @classmethod
    def _fill_legacy_defaults(cls, value: Any, info: ValidationInfo) -> Any:
        # Older entries were stored without a range or duration
        if value is None:
            return _WAITING_LIST_DEFAULTS.get(info.field_name)
        if info.field_name == "service_duration":
            return value
        return parse_time(value)
