"""
Advisory search for alternatives when a date/service has no free slot.

Looks at other services on the same date, then at the same service on
the following days. Best effort only: any failure degrades to an empty
suggestion list with a StaleDataWarning instead of surfacing.
"""

import logging
import warnings
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Awaitable, Callable, Iterable, Optional

from booking_engine.config import settings
from booking_engine.errors import StaleDataWarning
from booking_engine.schemas.booking_schema import Booking
from booking_engine.schemas.schedule_schema import Business, ScheduleOverride, Service, Staff
from booking_engine.scheduling.availability import slots_for_day
from booking_engine.scheduling.policies import is_within_booking_window
from booking_engine.scheduling.schedule_resolver import resolve_day

logger = logging.getLogger(__name__)

BookingFetcher = Callable[[date], Awaitable[list[Booking]]]


@dataclass
class AlternativeService:
    service: Service
    available_slots: int


@dataclass
class AlternativeDate:
    date: date
    available_slots: int


@dataclass
class AlternativeSuggestions:
    """Other services on the requested date and other dates for the requested service."""
    services: list[AlternativeService] = field(default_factory=list)
    dates: list[AlternativeDate] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.services and not self.dates


async def find_alternatives(
    day: date,
    staff: Staff,
    service: Service,
    services: Iterable[Service],
    fetch_bookings: BookingFetcher,
    business: Optional[Business] = None,
    overrides: Iterable[ScheduleOverride] = (),
    today: Optional[date] = None,
    exclude_booking_id: Optional[str] = None,
    search_days: Optional[int] = None,
    max_dates: Optional[int] = None,
) -> AlternativeSuggestions:
    """
    Search for availability near a fully booked request.

    Args:
        day: Requested date.
        staff: Requested staff member.
        service: Requested service.
        services: All services of the business; the requested one is skipped.
        fetch_bookings: Coroutine returning fresh bookings of ``staff`` for a date.
        business: Used for override scoping and the booking window.
        today: Reference date for the booking window; defaults to today.
        search_days: Days after ``day`` to scan; defaults to config.
        max_dates: Stop after this many dates with availability; defaults to config.
    """
    search_days = settings.alternatives.search_days if search_days is None else search_days
    max_dates = settings.alternatives.max_dates if max_dates is None else max_dates
    today = today or date.today()
    overrides = list(overrides)
    suggestions = AlternativeSuggestions()

    try:
        day_bookings = await fetch_bookings(day)
        for other in services:
            if other.id == service.id:
                continue
            count = len(slots_for_day(
                day, staff, other.duration, day_bookings, business, overrides, exclude_booking_id
            ))
            if count > 0:
                suggestions.services.append(AlternativeService(other, count))

        for offset in range(1, search_days + 1):
            candidate = day + timedelta(days=offset)
            if business is not None and not is_within_booking_window(candidate, today, business):
                continue
            if not resolve_day(candidate, staff, business, overrides).enabled:
                continue
            bookings = await fetch_bookings(candidate)
            count = len(slots_for_day(
                candidate, staff, service.duration, bookings, business, overrides,
                exclude_booking_id,
            ))
            if count > 0:
                suggestions.dates.append(AlternativeDate(candidate, count))
                if len(suggestions.dates) >= max_dates:
                    break
    except Exception as exc:
        logger.warning("Alternative search failed for staff %s on %s: %s", staff.id, day, exc)
        warnings.warn(
            f"Alternative search degraded to no results: {exc}", StaleDataWarning, stacklevel=2
        )
        return AlternativeSuggestions()

    logger.info(
        "Alternatives for staff %s on %s: %d service(s), %d date(s)",
        staff.id, day, len(suggestions.services), len(suggestions.dates),
    )
    return suggestions
