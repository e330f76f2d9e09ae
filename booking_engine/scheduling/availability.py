"""
Day-level availability built on the resolver and the slot generator.

All functions are pure: callers pass bookings they fetched just before
the call, never a cached copy.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from booking_engine.schemas.booking_schema import Booking
from booking_engine.schemas.schedule_schema import Business, ScheduleOverride, Staff
from booking_engine.scheduling.policies import is_within_booking_window
from booking_engine.scheduling.schedule_resolver import resolve_day
from booking_engine.scheduling.slot_generator import generate_slots

logger = logging.getLogger(__name__)


def bookings_for_day(bookings: Iterable[Booking], staff_id: str, day: date) -> list[Booking]:
    return [b for b in bookings if b.staff_id == staff_id and b.date == day]


def slots_for_day(
    day: date,
    staff: Staff,
    duration: int,
    bookings: Iterable[Booking],
    business: Optional[Business] = None,
    overrides: Iterable[ScheduleOverride] = (),
    exclude_booking_id: Optional[str] = None,
    granularity: Optional[int] = None,
    min_gap: Optional[int] = None,
) -> list[int]:
    """Bookable start times for ``staff`` on ``day`` for a service of ``duration`` minutes."""
    plan = resolve_day(day, staff, business, overrides)
    if not plan.enabled:
        return []
    return generate_slots(
        plan.shifts,
        duration,
        bookings_for_day(bookings, staff.id, day),
        granularity=granularity,
        min_gap=min_gap,
        exclude_booking_id=exclude_booking_id,
    )


def bookable_dates(
    dates: Iterable[date],
    staff: Staff,
    business: Business,
    overrides: Iterable[ScheduleOverride] = (),
    today: Optional[date] = None,
) -> list[date]:
    """Dates inside the booking window on which ``staff`` works at all."""
    today = today or date.today()
    overrides = list(overrides)
    return [
        day for day in dates
        if is_within_booking_window(day, today, business)
        and resolve_day(day, staff, business, overrides).enabled
    ]


def available_dates(
    dates: Iterable[date],
    staff: Staff,
    duration: int,
    bookings: Iterable[Booking],
    business: Business,
    overrides: Iterable[ScheduleOverride] = (),
    today: Optional[date] = None,
) -> list[date]:
    """Bookable dates that still have at least one free slot."""
    bookings = list(bookings)
    overrides = list(overrides)
    return [
        day for day in bookable_dates(dates, staff, business, overrides, today)
        if slots_for_day(day, staff, duration, bookings, business, overrides)
    ]
