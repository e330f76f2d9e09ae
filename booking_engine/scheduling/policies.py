"""Business policy checks: booking window and cancellation/edit cutoff."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from booking_engine.config import settings
from booking_engine.errors import PolicyViolationError
from booking_engine.schemas.booking_schema import Booking, BookingStatus
from booking_engine.schemas.schedule_schema import Business
from booking_engine.utils import combine

logger = logging.getLogger(__name__)


def booking_window_end(today: date, business: Business) -> Optional[date]:
    """Last bookable date, or None when the business has no window."""
    if not business.booking_window_enabled or not business.booking_window_days:
        return None
    return today + timedelta(days=business.booking_window_days)


def is_within_booking_window(day: date, today: date, business: Business) -> bool:
    """Past dates are never bookable; future ones only up to the window end."""
    if day < today:
        return False
    window_end = booking_window_end(today, business)
    return window_end is None or day <= window_end


def ensure_within_booking_window(day: date, today: date, business: Business) -> None:
    if not is_within_booking_window(day, today, business):
        raise PolicyViolationError(
            f"{day} is outside the booking window of business {business.id}."
        )


def cancellation_hours(business: Business) -> int:
    if business.cancellation_hours_limit is None:
        return settings.policy.default_cancellation_hours
    return business.cancellation_hours_limit


def can_modify(booking: Booking, business: Business, now: datetime) -> bool:
    """Whether a client may still cancel or edit ``booking``.

    Requests still awaiting approval can always be withdrawn. Otherwise the
    appointment must start at least ``cancellation_hours_limit`` hours from now.
    """
    if booking.status == BookingStatus.PENDING_APPROVAL:
        return True
    if booking.status != BookingStatus.CONFIRMED:
        return False
    starts_at = combine(booking.date, booking.time)
    if starts_at <= now:
        return False
    hours_left = (starts_at - now).total_seconds() / 3600
    return hours_left >= cancellation_hours(business)


def ensure_can_modify(booking: Booking, business: Business, now: datetime) -> None:
    if not can_modify(booking, business, now):
        raise PolicyViolationError(
            f"Booking {booking.id} cannot be changed less than "
            f"{cancellation_hours(business)} hours before it starts."
        )
