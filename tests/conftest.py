"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest
import pytest_asyncio

from booking_engine.booking_flow import BookingFlow
from booking_engine.schemas.booking_schema import Booking, BookingStatus
from booking_engine.schemas.schedule_schema import (
    Business,
    DayPlan,
    FeatureFlags,
    ScheduleOverride,
    Service,
    Shift,
    Staff,
    WorkingHours,
)
from booking_engine.stores.booking_store import InMemoryBookingStore
from booking_engine.stores.notifications import RecordingNotificationSink
from booking_engine.stores.schedule_provider import InMemoryScheduleProvider

# Monday 2024-06-10, 08:00. 2024-06-09 is a Sunday.
NOW = datetime(2024, 6, 10, 8, 0)
MONDAY = date(2024, 6, 10)
SUNDAY = date(2024, 6, 9)

BUSINESS_ID = "biz-1"
STAFF_ID = "staff-1"


def make_hours(
    start: str = "09:00",
    end: str = "17:00",
    days: tuple[str, ...] = ("sunday", "monday", "tuesday", "wednesday", "thursday"),
) -> WorkingHours:
    """Weekly hours with one identical shift on each of ``days``."""
    plans = {key: DayPlan(enabled=True, shifts=[Shift(start=start, end=end)]) for key in days}
    return WorkingHours(**plans)


def make_business(
    business_id: str = BUSINESS_ID,
    hours: Optional[WorkingHours] = None,
    **kwargs,
) -> Business:
    return Business(
        id=business_id,
        name=kwargs.pop("name", "Test Salon"),
        working_hours=hours if hours is not None else make_hours(),
        **kwargs,
    )


def make_staff(
    staff_id: str = STAFF_ID,
    business_id: str = BUSINESS_ID,
    schedule: Optional[WorkingHours] = None,
    uses_business_hours: bool = False,
) -> Staff:
    if schedule is None and not uses_business_hours:
        schedule = make_hours()
    return Staff(
        id=staff_id,
        business_id=business_id,
        name="Noa",
        schedule=schedule,
        uses_business_hours=uses_business_hours,
    )


def make_service(
    service_id: str = "svc-cut",
    duration: int = 30,
    name: str = "Haircut",
    business_id: str = BUSINESS_ID,
) -> Service:
    return Service(id=service_id, business_id=business_id, name=name, duration=duration)


def make_booking(
    time: str = "10:00",
    duration: int = 60,
    day: date = MONDAY,
    status: BookingStatus = BookingStatus.CONFIRMED,
    booking_id: Optional[str] = None,
    staff_id: str = STAFF_ID,
    client_phone: str = "050-0000000",
    business_id: str = BUSINESS_ID,
) -> Booking:
    """Helper to create a Booking with sensible defaults."""
    return Booking(
        id=booking_id,
        business_id=business_id,
        staff_id=staff_id,
        service_id="svc-cut",
        client_phone=client_phone,
        client_name="Client",
        date=day,
        time=time,
        duration=duration,
        status=status,
    )


def make_override(
    day: date = MONDAY,
    staff_id: Optional[str] = None,
    shifts: Optional[list[tuple[str, str]]] = None,
    is_day_off: bool = False,
    business_id: str = BUSINESS_ID,
) -> ScheduleOverride:
    return ScheduleOverride(
        business_id=business_id,
        date=day,
        staff_id=staff_id,
        is_day_off=is_day_off,
        shifts=[Shift(start=s, end=e) for s, e in (shifts or [])],
    )


@pytest.fixture
def business():
    return make_business()


@pytest.fixture
def staff():
    return make_staff()


@pytest.fixture
def store():
    store = InMemoryBookingStore()
    yield store
    store.reset()


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def schedule():
    provider = InMemoryScheduleProvider()
    provider.add_business(
        make_business(cancellation_hours_limit=24, booking_window_enabled=True, booking_window_days=30),
        FeatureFlags(new_client_approval=True, recurring_bookings=True, waiting_list=True),
    )
    provider.add_staff(make_staff())
    provider.add_service(make_service())
    provider.add_service(make_service("svc-beard", 15, "Beard trim"))
    provider.add_service(make_service("svc-color", 120, "Coloring"))
    return provider


@pytest_asyncio.fixture
async def flow(store, schedule, sink):
    flow = BookingFlow(store, schedule, sink, clock=lambda: NOW)
    yield flow
    await flow.drain_notifications()
