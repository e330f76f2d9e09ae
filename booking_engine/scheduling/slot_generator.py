"""
Bookable start-time generation for a single staff member and day.

Candidates are enumerated per shift at a fixed granularity and rejected
when they overlap an active booking, or when they would leave an idle
gap before or after a neighbouring booking that is too short to sell
on its own. A gap of exactly zero (back-to-back) is always accepted;
only ``0 < gap < min_gap`` is rejected.
"""

import logging
from typing import Iterable, NamedTuple, Optional

from booking_engine.config import settings
from booking_engine.errors import ValidationError
from booking_engine.schemas.booking_schema import Booking
from booking_engine.schemas.schedule_schema import Shift

logger = logging.getLogger(__name__)


class Interval(NamedTuple):
    """Half-open occupied interval ``[start, end)`` in minutes of the day."""

    start: int
    end: int


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open interval overlap test."""
    return start < other_end and end > other_start


def occupied_intervals(
    bookings: Iterable[Booking], exclude_booking_id: Optional[str] = None
) -> list[Interval]:
    """Active booking intervals sorted by start, minus the excluded booking."""
    intervals = [
        Interval(b.start, b.end)
        for b in bookings
        if b.is_active and not (exclude_booking_id and b.id == exclude_booking_id)
    ]
    return sorted(intervals)


def creates_unusable_gap(start: int, end: int, occupied: list[Interval], min_gap: int) -> bool:
    """Check whether ``[start, end)`` leaves a sliver shorter than ``min_gap``.

    Only the nearest booking ending at or before ``start`` and the nearest
    booking starting at or after ``end`` are considered.
    """
    previous_end = max((i.end for i in occupied if i.end <= start), default=None)
    next_start = min((i.start for i in occupied if i.start >= end), default=None)

    if previous_end is not None and 0 < start - previous_end < min_gap:
        return True
    if next_start is not None and 0 < next_start - end < min_gap:
        return True
    return False


def _validate_inputs(duration: int, granularity: int, min_gap: int) -> None:
    if duration <= 0:
        raise ValidationError(f"Service duration must be positive, got {duration}")
    if granularity <= 0:
        raise ValidationError(f"Granularity must be positive, got {granularity}")
    if min_gap < 0:
        raise ValidationError(f"Minimum usable gap must be >= 0, got {min_gap}")


def generate_slots(
    shifts: Iterable[Shift],
    duration: int,
    bookings: Iterable[Booking] = (),
    granularity: Optional[int] = None,
    min_gap: Optional[int] = None,
    exclude_booking_id: Optional[str] = None,
) -> list[int]:
    """
    Enumerate bookable start times (minute of day) within ``shifts``.

    Args:
        shifts: Effective shifts for the day, as returned by the resolver.
        duration: Service duration in minutes.
        bookings: Existing bookings of this staff member on this day. Inactive
            statuses are ignored.
        granularity: Step between candidates; defaults to config.
        min_gap: Minimum sellable idle gap; defaults to config.
        exclude_booking_id: Booking being rescheduled, so it does not block itself.

    Returns:
        Sorted, de-duplicated list of accepted start times.

    Raises:
        ValidationError: On non-positive duration/granularity or negative gap.
    """
    granularity = settings.slots.granularity_minutes if granularity is None else granularity
    min_gap = settings.slots.min_usable_gap_minutes if min_gap is None else min_gap
    _validate_inputs(duration, granularity, min_gap)

    occupied = occupied_intervals(bookings, exclude_booking_id)
    accepted: set[int] = set()

    for shift in shifts:
        cursor = shift.start
        while cursor + duration <= shift.end:
            end = cursor + duration
            if any(overlaps(cursor, end, i.start, i.end) for i in occupied):
                logger.debug("Slot %d rejected: overlaps booking", cursor)
            elif creates_unusable_gap(cursor, end, occupied, min_gap):
                logger.debug("Slot %d rejected: leaves unusable gap", cursor)
            else:
                accepted.add(cursor)
            cursor += granularity

    return sorted(accepted)
