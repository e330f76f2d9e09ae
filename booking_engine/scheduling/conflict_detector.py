"""
Double-booking detection for a proposed appointment.

Run once while generating slots and again, against freshly fetched
bookings, right before the store write: bookings may have been created
between slot display and submission.
"""

import logging
from typing import Iterable, Optional

from booking_engine.errors import ConflictError
from booking_engine.schemas.booking_schema import Booking, SlotCandidate
from booking_engine.schemas.schedule_schema import DayPlan
from booking_engine.scheduling.slot_generator import overlaps
from booking_engine.utils import format_time

logger = logging.getLogger(__name__)


def find_conflicts(
    candidate: SlotCandidate,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> list[Booking]:
    """Return the active bookings of the same staff and date that overlap ``candidate``."""
    conflicts = []
    for booking in bookings:
        if not booking.is_active:
            continue
        if booking.staff_id != candidate.staff_id or booking.date != candidate.date:
            continue
        if exclude_booking_id and booking.id == exclude_booking_id:
            continue
        if overlaps(candidate.time, candidate.end, booking.start, booking.end):
            conflicts.append(booking)
    return conflicts


def has_conflict(
    candidate: SlotCandidate,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> bool:
    """Check whether ``candidate`` overlaps any active booking."""
    return bool(find_conflicts(candidate, bookings, exclude_booking_id))


def ensure_no_conflict(
    candidate: SlotCandidate,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> None:
    """
    Submission-time guard.

    Raises:
        ConflictError: If the slot is taken; the caller should refresh slots.
    """
    conflicts = find_conflicts(candidate, bookings, exclude_booking_id)
    if conflicts:
        logger.warning(
            "Conflict for staff %s on %s at %s with %d booking(s)",
            candidate.staff_id, candidate.date, format_time(candidate.time), len(conflicts),
        )
        raise ConflictError(
            f"{candidate.date} {format_time(candidate.time)} is no longer available.",
            conflicts=conflicts,
        )


def within_working_hours(candidate: SlotCandidate, plan: DayPlan) -> bool:
    """Whether ``candidate`` lies entirely inside one shift of an enabled day."""
    if not plan.enabled:
        return False
    return any(s.start <= candidate.time and candidate.end <= s.end for s in plan.shifts)


def ensure_within_working_hours(candidate: SlotCandidate, plan: DayPlan) -> None:
    """
    Submission-time guard against hours that changed after slots were shown.

    Raises:
        ConflictError: If the day is closed or the interval leaves every shift.
    """
    if not within_working_hours(candidate, plan):
        logger.warning(
            "Staff %s does not work %s at %s", candidate.staff_id, candidate.date,
            format_time(candidate.time),
        )
        raise ConflictError(
            f"{candidate.date} {format_time(candidate.time)} is outside working hours."
        )
