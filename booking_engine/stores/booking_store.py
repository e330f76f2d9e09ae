"""
Booking store interface and an in-memory implementation.

In production the store is the hosted data API; the engine only relies on
filter/create/update and treats every call as a fresh read of the single
source of truth.
"""

import logging
import uuid
from typing import Any, Optional, Protocol

from booking_engine.schemas.booking_schema import Booking, WaitingListEntry
from booking_engine.utils import normalize_phone, parse_date

logger = logging.getLogger(__name__)

DEFAULT_FILTER_LIMIT = 1000


class BookingStore(Protocol):
    """Black-box persistence for bookings and waiting-list entries."""

    async def filter(self, limit: int = DEFAULT_FILTER_LIMIT, **criteria: Any) -> list[Booking]: ...

    async def get(self, booking_id: str) -> Optional[Booking]: ...

    async def create(self, booking: Booking, idempotency_key: Optional[str] = None) -> Booking: ...

    async def update(self, booking_id: str, **changes: Any) -> Booking: ...

    async def filter_waiting_list(self, **criteria: Any) -> list[WaitingListEntry]: ...

    async def update_waiting_list(self, entry_id: str, **changes: Any) -> WaitingListEntry: ...


def _normalize_criteria(criteria: dict[str, Any]) -> dict[str, Any]:
    normalized = dict(criteria)
    if "date" in normalized:
        normalized["date"] = parse_date(normalized["date"])
    return normalized


def _matches(record: Any, criteria: dict[str, Any]) -> bool:
    for key, value in criteria.items():
        if key == "client_phone":
            # Phones are stored as typed; compare digits only
            if normalize_phone(record.client_phone) != normalize_phone(value):
                return False
        elif getattr(record, key) != value:
            return False
    return True


def _same_slot(stored: Booking, booking: Booking) -> bool:
    return stored.is_active and (stored.staff_id, stored.date, stored.time) == (
        booking.staff_id, booking.date, booking.time
    )


class InMemoryBookingStore:
    """Dict-backed store.

    A repeated create with the same idempotency key returns the first row while
    that row still holds the same slot. Once it was cancelled or moved the key
    is stale and a new row is written.
    """

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._idempotency: dict[str, str] = {}
        self._waiting_list: dict[str, WaitingListEntry] = {}

    async def filter(self, limit: int = DEFAULT_FILTER_LIMIT, **criteria: Any) -> list[Booking]:
        criteria = _normalize_criteria(criteria)
        rows = [b for b in self._bookings.values() if _matches(b, criteria)]
        return rows[:limit]

    async def get(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    async def create(self, booking: Booking, idempotency_key: Optional[str] = None) -> Booking:
        if idempotency_key and idempotency_key in self._idempotency:
            existing = self._bookings[self._idempotency[idempotency_key]]
            if _same_slot(existing, booking):
                logger.info("Duplicate create ignored (key %s), returning %s", idempotency_key, existing.id)
                return existing
            logger.info("Idempotency key %s is stale (%s no longer holds the slot)", idempotency_key, existing.id)

        ref = self._new_ref("BK", self._bookings)
        stored = booking.model_copy(update={"id": ref})
        self._bookings[ref] = stored
        if idempotency_key:
            self._idempotency[idempotency_key] = ref
        logger.info(
            "Booking created: %s for %s on %s at %s (%s)",
            ref, stored.client_name or stored.client_phone, stored.date,
            stored.time_label, stored.status.value,
        )
        return stored

    async def update(self, booking_id: str, **changes: Any) -> Booking:
        if booking_id not in self._bookings:
            raise KeyError(f"Booking {booking_id} not found.")
        current = self._bookings[booking_id]
        updated = Booking.model_validate({**current.model_dump(), **changes, "id": booking_id})
        self._bookings[booking_id] = updated
        logger.info("Booking updated: %s (%s)", booking_id, ", ".join(sorted(changes)))
        return updated

    async def add_waiting_entry(self, entry: WaitingListEntry) -> WaitingListEntry:
        ref = entry.id or self._new_ref("WL", self._waiting_list)
        stored = entry.model_copy(update={"id": ref})
        self._waiting_list[ref] = stored
        return stored

    async def filter_waiting_list(self, **criteria: Any) -> list[WaitingListEntry]:
        criteria = _normalize_criteria(criteria)
        return [e for e in self._waiting_list.values() if _matches(e, criteria)]

    async def update_waiting_list(self, entry_id: str, **changes: Any) -> WaitingListEntry:
        if entry_id not in self._waiting_list:
            raise KeyError(f"Waiting list entry {entry_id} not found.")
        current = self._waiting_list[entry_id]
        updated = WaitingListEntry.model_validate({**current.model_dump(), **changes, "id": entry_id})
        self._waiting_list[entry_id] = updated
        return updated

    @staticmethod
    def _new_ref(prefix: str, taken: dict[str, Any]) -> str:
        while True:
            ref = f"{prefix}-{uuid.uuid4().hex[:6].upper()}"
            if ref not in taken:
                return ref

    def reset(self) -> None:
        """Clear all rows. Used by test fixtures for isolation."""
        self._bookings.clear()
        self._idempotency.clear()
        self._waiting_list.clear()
