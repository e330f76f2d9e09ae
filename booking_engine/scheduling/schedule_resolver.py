"""
Effective working hours for one staff member on one calendar date.

Precedence, highest first:
1. an override for (business, date, staff)
2. an override for (business, date, all staff)
3. the staff member's weekly schedule for that weekday

A day-off override always wins over any shifts it carries. Overlapping
shifts are merged so downstream code only ever sees sorted, disjoint
intervals.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from booking_engine.schemas.schedule_schema import (
    Business,
    DayPlan,
    ScheduleOverride,
    Shift,
    Staff,
    WorkingHours,
)
from booking_engine.utils import day_key

logger = logging.getLogger(__name__)

CLOSED_DAY = DayPlan(enabled=False, shifts=[])


def merge_shifts(shifts: Iterable[Shift]) -> list[Shift]:
    """Return the union of ``shifts`` as sorted, non-overlapping intervals.

    Touching shifts (one ends where the next starts) are merged too, so a
    slot may span the boundary between them.
    """
    merged: list[Shift] = []
    for shift in sorted(shifts, key=lambda s: (s.start, s.end)):
        if merged and shift.start <= merged[-1].end:
            if shift.end > merged[-1].end:
                merged[-1] = Shift(start=merged[-1].start, end=shift.end)
            continue
        merged.append(Shift(start=shift.start, end=shift.end))
    return merged


def find_override(
    day: date,
    staff: Staff,
    overrides: Iterable[ScheduleOverride],
    business_id: Optional[str] = None,
) -> Optional[ScheduleOverride]:
    """Pick the override that governs ``day`` for ``staff``, if any.

    Overrides that are neither a day off nor carry shifts do not change
    the hours and are skipped in favour of the next precedence level.
    """
    business_id = business_id or staff.business_id
    staff_specific: Optional[ScheduleOverride] = None
    all_staff: Optional[ScheduleOverride] = None

    for override in overrides:
        if override.business_id != business_id or override.date != day:
            continue
        if not override.is_day_off and not override.shifts:
            continue
        if override.staff_id == staff.id and staff_specific is None:
            staff_specific = override
        elif override.staff_id is None and all_staff is None:
            all_staff = override

    return staff_specific or all_staff


def weekly_schedule_for(staff: Staff, business: Optional[Business] = None) -> Optional[WorkingHours]:
    """Return the weekly schedule to use for ``staff``.

    Staff following business hours normally carry a copy of them; if that
    copy is missing the business hours are read directly.
    """
    if staff.schedule is not None and not staff.schedule.is_empty():
        return staff.schedule
    if staff.uses_business_hours and business is not None:
        return business.working_hours
    return staff.schedule


def resolve_day(
    day: date,
    staff: Staff,
    business: Optional[Business] = None,
    overrides: Iterable[ScheduleOverride] = (),
) -> DayPlan:
    """Return the effective plan for ``staff`` on ``day``.

    The result is always canonical: ``enabled`` is False with no shifts, or
    True with merged shifts.
    """
    business_id = business.id if business is not None else staff.business_id
    override = find_override(day, staff, overrides, business_id)

    if override is not None:
        if override.is_day_off:
            logger.debug("Day off override for staff %s on %s", staff.id, day)
            return CLOSED_DAY
        logger.debug(
            "Using %s override for staff %s on %s",
            "staff" if override.staff_id else "all-staff", staff.id, day,
        )
        return DayPlan(enabled=True, shifts=merge_shifts(override.shifts))

    schedule = weekly_schedule_for(staff, business)
    if schedule is None:
        return CLOSED_DAY

    plan = schedule.for_day(day_key(day))
    if plan is None or not plan.enabled or not plan.shifts:
        return CLOSED_DAY
    return DayPlan(enabled=True, shifts=merge_shifts(plan.shifts))
