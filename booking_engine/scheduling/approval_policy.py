"""
Auto-confirm vs. manual-approval decision for new client bookings.

Rules are evaluated in order, first match wins:
1. Weekly limit: the client already has a confirmed or completed booking
   at this business in the same Sunday-Saturday week -> pending approval.
2. New client: no confirmed/completed booking ever, the plan includes
   new-client approval and the business has not switched it off
   -> pending approval.
3. Otherwise -> confirmed.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from booking_engine.schemas.booking_schema import HISTORY_STATUSES, Booking, BookingStatus
from booking_engine.schemas.schedule_schema import Business, FeatureFlags
from booking_engine.utils import normalize_phone, week_bounds

logger = logging.getLogger(__name__)


class ApprovalReason(str, Enum):
    WEEKLY_LIMIT = "weekly_limit"
    NEW_CLIENT = "new_client"
    AUTO_CONFIRMED = "auto_confirmed"


@dataclass(frozen=True)
class ApprovalDecision:
    """Outcome of the approval policy for one booking request."""
    status: BookingStatus
    is_first_booking: bool
    reason: ApprovalReason


def client_history(
    bookings: Iterable[Booking],
    client_phone: str,
    business_id: str,
    exclude_booking_id: Optional[str] = None,
) -> list[Booking]:
    """Confirmed and completed bookings of this client at this business."""
    phone = normalize_phone(client_phone)
    return [
        b for b in bookings
        if b.business_id == business_id
        and b.status in HISTORY_STATUSES
        and normalize_phone(b.client_phone) == phone
        and not (exclude_booking_id and b.id == exclude_booking_id)
    ]


def requires_new_client_approval(business: Business, feature_flags: FeatureFlags) -> bool:
    # An unset policy counts as enabled; only an explicit False turns it off
    return feature_flags.new_client_approval and business.require_approval_for_new_clients is not False


def evaluate_approval(
    client_phone: str,
    booking_date: date,
    business: Business,
    bookings: Iterable[Booking],
    feature_flags: Optional[FeatureFlags] = None,
    exclude_booking_id: Optional[str] = None,
) -> ApprovalDecision:
    """Decide the initial status of a client booking and snapshot first-booking state."""
    feature_flags = feature_flags or FeatureFlags()
    history = client_history(bookings, client_phone, business.id, exclude_booking_id)
    is_first_booking = len(history) == 0

    week_start, week_end = week_bounds(booking_date)
    same_week = [b for b in history if week_start <= b.date <= week_end]

    if same_week:
        decision = ApprovalDecision(
            BookingStatus.PENDING_APPROVAL, is_first_booking, ApprovalReason.WEEKLY_LIMIT
        )
    elif is_first_booking and requires_new_client_approval(business, feature_flags):
        decision = ApprovalDecision(
            BookingStatus.PENDING_APPROVAL, is_first_booking, ApprovalReason.NEW_CLIENT
        )
    else:
        decision = ApprovalDecision(
            BookingStatus.CONFIRMED, is_first_booking, ApprovalReason.AUTO_CONFIRMED
        )

    logger.info(
        "Approval decision for %s on %s: %s (%s)",
        normalize_phone(client_phone), booking_date, decision.status.value, decision.reason.value,
    )
    return decision


def decide_status(
    client_phone: str,
    booking_date: date,
    business: Business,
    bookings: Iterable[Booking],
    feature_flags: Optional[FeatureFlags] = None,
) -> BookingStatus:
    """Return only the status part of :func:`evaluate_approval`."""
    return evaluate_approval(client_phone, booking_date, business, bookings, feature_flags).status
