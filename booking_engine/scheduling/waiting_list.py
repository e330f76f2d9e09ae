"""Matching waiting-list entries against time that just opened up."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from booking_engine.config import settings
from booking_engine.schemas.booking_schema import Booking, WaitingListEntry, WaitingListStatus
from booking_engine.scheduling.slot_generator import occupied_intervals, overlaps

logger = logging.getLogger(__name__)


@dataclass
class WaitingListMatch:
    """A waiting client and the first start time that fits them."""
    entry: WaitingListEntry
    time: int


def find_first_available_slot(
    range_start: int,
    range_end: int,
    duration: int,
    bookings: Iterable[Booking],
    granularity: Optional[int] = None,
) -> Optional[int]:
    """First start in ``[range_start, range_end)`` where ``duration`` fits without overlap."""
    granularity = settings.slots.granularity_minutes if granularity is None else granularity
    occupied = occupied_intervals(bookings)
    cursor = range_start
    while cursor + duration <= range_end:
        if not any(overlaps(cursor, cursor + duration, i.start, i.end) for i in occupied):
            return cursor
        cursor += granularity
    return None


def match_waiting_list(
    entries: Iterable[WaitingListEntry],
    opened_start: int,
    opened_end: int,
    bookings: Iterable[Booking],
) -> tuple[list[WaitingListMatch], int]:
    """
    Pair waiting entries with a slot inside the opened range.

    Returns:
        (matches, skipped) where skipped counts waiting entries whose
        preferred range misses the opened range or whose service does not fit.
    """
    bookings = list(bookings)
    matches: list[WaitingListMatch] = []
    skipped = 0

    for entry in entries:
        if entry.status != WaitingListStatus.WAITING:
            continue
        if opened_end <= entry.from_time or opened_start >= entry.to_time:
            skipped += 1
            continue

        start = max(opened_start, entry.from_time)
        end = min(opened_end, entry.to_time)
        slot = find_first_available_slot(start, end, entry.service_duration, bookings)
        if slot is None:
            logger.debug(
                "Waiting entry %s: %d min does not fit in %d-%d",
                entry.id, entry.service_duration, start, end,
            )
            skipped += 1
            continue
        matches.append(WaitingListMatch(entry, slot))

    return matches, skipped
