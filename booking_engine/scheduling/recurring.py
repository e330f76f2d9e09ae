"""
Recurring appointment expansion and materialization.

A recurring rule never occupies time itself: it is expanded into dates
up to a horizon and each date becomes an independent booking row. One
failed write does not abort the batch; every date is reported.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, Optional, Union

from booking_engine.config import settings
from booking_engine.errors import ConflictError, PartialFailure, ValidationError
from booking_engine.schemas.booking_schema import (
    Booking,
    BookingStatus,
    Frequency,
    RecurringAppointment,
    SlotCandidate,
)
from booking_engine.schemas.schedule_schema import Business
from booking_engine.scheduling.conflict_detector import ensure_no_conflict
from booking_engine.utils import DAY_KEYS, day_key

if TYPE_CHECKING:
    from booking_engine.stores.booking_store import BookingStore

logger = logging.getLogger(__name__)


def expand_occurrences(
    start: date, frequency: Union[Frequency, str], horizon: date
) -> list[date]:
    """Dates from ``start`` stepping weekly/biweekly, inclusive of both ends.

    Raises:
        ValidationError: If ``frequency`` is not weekly or biweekly.
    """
    try:
        step = timedelta(days=Frequency(frequency).step_days)
    except ValueError:
        raise ValidationError(f"Unknown recurrence frequency: {frequency!r}") from None

    dates = []
    current = start
    while current <= horizon:
        dates.append(current)
        current += step
    return dates


def recurring_horizon(today: date, business: Optional[Business] = None) -> date:
    """Last date recurring generation may reach.

    The business booking window when enabled, else the configured default.
    """
    if business is not None and business.booking_window_enabled and business.booking_window_days:
        return today + timedelta(days=business.booking_window_days)
    return today + timedelta(days=settings.policy.default_horizon_days)


def first_occurrence(rule: RecurringAppointment, today: date) -> date:
    """First date on or after ``today`` (and after the last generated one) matching the rule."""
    earliest = today
    if rule.last_booking_date is not None:
        earliest = max(earliest, rule.last_booking_date + timedelta(days=1))

    anchor = rule.biweekly_start_date if rule.frequency is Frequency.BIWEEKLY else None
    if anchor is not None:
        earliest = max(earliest, anchor)

    target_key = DAY_KEYS[rule.day_of_week]
    candidate = earliest
    while day_key(candidate) != target_key:
        candidate += timedelta(days=1)

    # Biweekly rules only fire in even weeks counted from the anchor
    if anchor is not None and ((candidate - anchor).days // 7) % 2:
        candidate += timedelta(days=7)
    return candidate


def build_occurrence(rule: RecurringAppointment, day: date) -> Booking:
    """Booking row for one occurrence of ``rule``."""
    return Booking(
        business_id=rule.business_id,
        staff_id=rule.staff_id,
        service_id=rule.service_id,
        client_phone=rule.client_phone,
        client_name=rule.client_name,
        service_name=rule.service_name,
        staff_name=rule.staff_name,
        date=day,
        time=rule.time,
        duration=rule.duration,
        status=BookingStatus.CONFIRMED,
        is_first_booking=False,
        booked_by_owner=True,
    )


@dataclass
class OccurrenceResult:
    """Outcome of writing a single occurrence."""
    date: date
    success: bool
    booking_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RecurringBatchResult:
    """Per-date report for one recurring materialization run."""
    rule_id: Optional[str] = None
    occurrences: list[OccurrenceResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.occurrences if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.occurrences if not o.success)

    @property
    def last_success_date(self) -> Optional[date]:
        dates = [o.date for o in self.occurrences if o.success]
        return max(dates) if dates else None


async def materialize_rule(
    rule: RecurringAppointment,
    store: "BookingStore",
    today: date,
    business: Optional[Business] = None,
    raise_on_failure: bool = False,
) -> RecurringBatchResult:
    """
    Write one booking per occurrence of ``rule`` up to the horizon.

    Each date is checked against freshly fetched bookings of the staff
    member; a conflict or a failed write marks that date as failed and the
    batch continues.

    Raises:
        PartialFailure: Only when ``raise_on_failure`` is set and some dates failed.
    """
    result = RecurringBatchResult(rule_id=rule.id)
    if not rule.is_active:
        logger.info("Recurring rule %s is inactive, nothing to generate", rule.id)
        return result

    start = first_occurrence(rule, today)
    horizon = recurring_horizon(today, business)

    for day in expand_occurrences(start, rule.frequency, horizon):
        try:
            existing = await store.filter(
                business_id=rule.business_id, staff_id=rule.staff_id, date=day
            )
            candidate = SlotCandidate(
                date=day, time=rule.time, duration=rule.duration, staff_id=rule.staff_id
            )
            ensure_no_conflict(candidate, existing)
            created = await store.create(
                build_occurrence(rule, day),
                idempotency_key=f"recurring|{rule.id}|{day.isoformat()}",
            )
            result.occurrences.append(OccurrenceResult(day, True, booking_id=created.id))
        except ConflictError as exc:
            logger.warning("Recurring rule %s skipped %s: %s", rule.id, day, exc)
            result.occurrences.append(OccurrenceResult(day, False, error=str(exc)))
        except Exception as exc:
            logger.exception("Recurring rule %s failed to write %s", rule.id, day)
            result.occurrences.append(OccurrenceResult(day, False, error=str(exc)))

    logger.info(
        "Recurring rule %s: %d created, %d failed", rule.id, result.succeeded, result.failed
    )
    if raise_on_failure and result.failed:
        raise PartialFailure(
            f"{result.failed} of {len(result.occurrences)} occurrences failed", result
        )
    return result
