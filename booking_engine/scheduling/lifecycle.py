"""
Finite state machine for booking status changes.

Every status change of a booking row goes through an explicit
transition table; anything not listed is rejected with the triggers
that would have been valid.

Usage:
    lifecycle = BookingLifecycle(BookingStatus.PENDING_APPROVAL)
    lifecycle.transition(BookingTrigger.APPROVE)
    assert lifecycle.current_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from booking_engine.errors import InvalidTransitionError
from booking_engine.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingTrigger(str, Enum):
    """Events that change a booking's status."""
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"
    RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class StatusTransition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: BookingTrigger


@dataclass
class StatusEntry:
    """Recorded history entry for a status change."""
    status: BookingStatus
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


TRANSITIONS: list[StatusTransition] = [
    # --- Owner approval ---
    StatusTransition(BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED,
                     BookingTrigger.APPROVE),
    StatusTransition(BookingStatus.PENDING_APPROVAL, BookingStatus.CANCELLED,
                     BookingTrigger.REJECT),

    # --- Cancellation ---
    StatusTransition(BookingStatus.PENDING_APPROVAL, BookingStatus.CANCELLED,
                     BookingTrigger.CANCEL),
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED,
                     BookingTrigger.CANCEL),

    # --- Completion ---
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED,
                     BookingTrigger.COMPLETE),

    # --- Reschedule keeps the status ---
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CONFIRMED,
                     BookingTrigger.RESCHEDULE),
    StatusTransition(BookingStatus.PENDING_APPROVAL, BookingStatus.PENDING_APPROVAL,
                     BookingTrigger.RESCHEDULE),
]


def valid_triggers(status: BookingStatus) -> list[BookingTrigger]:
    """Return all triggers valid from ``status``."""
    return [t.trigger for t in TRANSITIONS if t.from_status == status]


def apply_transition(status: BookingStatus, trigger: BookingTrigger) -> BookingStatus:
    """
    Compute the status after ``trigger``.

    Raises:
        InvalidTransitionError: If no transition exists from ``status``.
    """
    for t in TRANSITIONS:
        if t.from_status == status and t.trigger == trigger:
            return t.to_status

    valid = [t.value for t in valid_triggers(status)]
    raise InvalidTransitionError(
        f"No valid transition from '{status.value}' "
        f"with trigger '{trigger.value}'. Valid triggers: {valid}"
    )


class BookingLifecycle:
    """Tracks one booking's status and the history of its changes."""

    def __init__(self, status: BookingStatus = BookingStatus.CONFIRMED) -> None:
        self._current_status = status
        self._history: list[StatusEntry] = [
            StatusEntry(status=status, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, trigger: BookingTrigger) -> BookingStatus:
        old_status = self._current_status
        self._current_status = apply_transition(old_status, trigger)
        self._history.append(StatusEntry(
            status=self._current_status,
            entered_at=datetime.now(timezone.utc),
            trigger=trigger,
        ))
        logger.debug(
            "Booking status: %s -> %s (trigger: %s)",
            old_status.value, self._current_status.value, trigger.value,
        )
        return self._current_status

    def get_history(self) -> list[StatusEntry]:
        return list(self._history)

    def is_terminal(self) -> bool:
        """Cancelled and completed bookings accept no further triggers."""
        return not valid_triggers(self._current_status)
