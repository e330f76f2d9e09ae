"""
Fire-and-forget notification sink.

In production this posts to the WhatsApp gateway. Delivery never affects
slot computation or booking writes: failures are logged and dropped.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_PENDING = "booking_pending"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_CANCELLED = "booking_cancelled"
    WAITING_LIST_SLOT = "waiting_list_slot"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    phone: str
    client_name: str
    business_name: str
    date: str
    time: str
    service_name: str = ""


class NotificationSink(Protocol):
    async def send(self, notification: Notification) -> bool: ...


class LoggingNotificationSink:
    """Writes notifications to the log instead of delivering them."""

    async def send(self, notification: Notification) -> bool:
        logger.info(
            "Notify %s (%s): %s %s %s",
            notification.phone, notification.kind.value,
            notification.service_name, notification.date, notification.time,
        )
        return True


class RecordingNotificationSink:
    """Keeps every notification in memory, for demos and tests."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> bool:
        self.sent.append(notification)
        return True


async def dispatch_safely(sink: NotificationSink, notification: Notification) -> bool:
    """Send ``notification`` and report success; never raises."""
    try:
        delivered = await sink.send(notification)
    except Exception:
        logger.exception(
            "Failed to send %s notification to %s", notification.kind.value, notification.phone
        )
        return False
    if not delivered:
        logger.warning("Notification %s to %s was not delivered", notification.kind.value, notification.phone)
    return bool(delivered)
