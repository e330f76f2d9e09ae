"""
Booking flow orchestration over the store, schedule provider and notifier.

Every operation reads bookings fresh from the store right before it
computes anything, and submissions re-run the conflict check after any
user-facing delay. A per-action in-flight guard rejects a second
submission of the same action while the first is still being written,
and creates carry an idempotency key so the store can drop duplicates.

Client notifications and waiting-list offers run as background tasks so a
slow sink never delays the caller; ``drain_notifications`` waits for them.

Usage:
    flow = BookingFlow(store, schedule_provider, notifier)
    slots = await flow.available_slots("biz-1", "staff-1", day, "svc-cut")
    booking = await flow.submit_booking(request)
"""

import asyncio
import warnings
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Coroutine, Iterator, Optional

from booking_engine.errors import DuplicateSubmissionError, StaleDataWarning
from booking_engine.logging_context import get_request_logger, new_request_id
from booking_engine.schemas.booking_schema import (
    Booking,
    BookingRequest,
    BookingStatus,
    RecurringAppointment,
    SlotCandidate,
    WaitingListStatus,
)
from booking_engine.schemas.schedule_schema import Business, Staff
from booking_engine.scheduling.alternatives import AlternativeSuggestions, find_alternatives
from booking_engine.scheduling.approval_policy import ApprovalDecision, ApprovalReason, evaluate_approval
from booking_engine.scheduling.availability import slots_for_day
from booking_engine.scheduling.conflict_detector import ensure_no_conflict, ensure_within_working_hours
from booking_engine.scheduling.lifecycle import BookingTrigger, apply_transition
from booking_engine.scheduling.policies import (
    ensure_can_modify,
    ensure_within_booking_window,
    is_within_booking_window,
)
from booking_engine.scheduling.recurring import RecurringBatchResult, materialize_rule
from booking_engine.scheduling.schedule_resolver import resolve_day
from booking_engine.scheduling.waiting_list import match_waiting_list
from booking_engine.stores.booking_store import BookingStore
from booking_engine.stores.notifications import (
    LoggingNotificationSink,
    Notification,
    NotificationKind,
    NotificationSink,
    dispatch_safely,
)
from booking_engine.stores.schedule_provider import ScheduleProvider
from booking_engine.utils import format_time, parse_date, parse_time

logger = get_request_logger(__name__)


class InFlightGuard:
    """Synchronous per-action lock against double submission.

    The key is claimed before the first ``await`` of an operation and
    released when it finishes or fails. It does not protect against two
    different clients racing for one slot; the conflict re-check does.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    def is_held(self, key: str) -> bool:
        return key in self._keys

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        if key in self._keys:
            raise DuplicateSubmissionError(f"Action already in progress: {key}")
        self._keys.add(key)
        try:
            yield
        finally:
            self._keys.discard(key)


@dataclass
class WaitingListOutcome:
    notified: int = 0
    skipped: int = 0


class BookingFlow:
    """Client and owner booking operations built on the scheduling core."""

    def __init__(
        self,
        store: BookingStore,
        schedule: ScheduleProvider,
        notifier: Optional[NotificationSink] = None,
        guard: Optional[InFlightGuard] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.schedule = schedule
        self.notifier = notifier or LoggingNotificationSink()
        self.guard = guard or InFlightGuard()
        self._clock = clock
        # Strong references keep background tasks alive until they finish
        self._background: set[asyncio.Task] = set()

    def _today(self) -> date:
        return self._clock().date()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain_notifications(self) -> None:
        """Wait until every scheduled notification and waiting-list pass is done."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def _ensure_working_hours(self, candidate: SlotCandidate, staff: Staff, business: Business) -> None:
        overrides = await self.schedule.list_overrides(business.id)
        ensure_within_working_hours(candidate, resolve_day(candidate.date, staff, business, overrides))

    async def _fetch_day_bookings(self, business_id: str, staff_id: str, day: date) -> list[Booking]:
        return await self.store.filter(business_id=business_id, staff_id=staff_id, date=day)

    async def available_slots(
        self,
        business_id: str,
        staff_id: str,
        day: date,
        service_id: str,
        exclude_booking_id: Optional[str] = None,
        enforce_window: bool = True,
    ) -> list[int]:
        """Bookable start times, or ``[]`` if any collaborator fetch fails."""
        try:
            business = await self.schedule.get_business(business_id)
            staff = await self.schedule.get_staff(staff_id)
            service = await self.schedule.get_service(service_id)
            overrides = await self.schedule.list_overrides(business_id)
            bookings = await self._fetch_day_bookings(business_id, staff_id, day)
        except Exception as exc:
            logger.warning("Slot fetch failed for staff %s on %s: %s", staff_id, day, exc)
            warnings.warn(f"Slot generation degraded to no slots: {exc}", StaleDataWarning, stacklevel=2)
            return []

        if enforce_window and not is_within_booking_window(day, self._today(), business):
            logger.debug("%s is outside the booking window of %s", day, business_id)
            return []
        return slots_for_day(
            day, staff, service.duration, bookings, business, overrides, exclude_booking_id
        )

    async def submit_booking(self, request: BookingRequest) -> Booking:
        """
        Create a booking after re-verifying the slot against fresh data.

        Raises:
            DuplicateSubmissionError: Same request already being submitted.
            PolicyViolationError: Date outside the booking window (client flow).
            ConflictError: Slot taken since it was displayed, or no longer inside
                working hours (client flow); refresh and retry.
        """
        with self.guard.hold(request.action_key()):
            new_request_id()
            business = await self.schedule.get_business(request.business_id)
            staff = await self.schedule.get_staff(request.staff_id)
            service = await self.schedule.get_service(request.service_id)
            candidate = SlotCandidate(
                date=request.date, time=request.time, duration=service.duration, staff_id=staff.id
            )

            # Owners may book outside the window and outside working hours
            if not request.booked_by_owner:
                ensure_within_booking_window(request.date, self._today(), business)
                await self._ensure_working_hours(candidate, staff, business)

            fresh = await self._fetch_day_bookings(request.business_id, request.staff_id, request.date)
            ensure_no_conflict(candidate, fresh)

            history = await self.store.filter(business_id=business.id, client_phone=request.client_phone)
            flags = await self.schedule.get_feature_flags(business.id)
            decision = evaluate_approval(
                request.client_phone, request.date, business, history, flags
            )
            if request.booked_by_owner:
                decision = ApprovalDecision(
                    BookingStatus.CONFIRMED, decision.is_first_booking, ApprovalReason.AUTO_CONFIRMED
                )

            booking = Booking(
                business_id=business.id,
                staff_id=staff.id,
                staff_name=staff.name,
                service_id=service.id,
                service_name=service.name,
                client_phone=request.client_phone,
                client_name=request.client_name,
                date=request.date,
                time=request.time,
                duration=service.duration,
                status=decision.status,
                notes=request.notes,
                is_first_booking=decision.is_first_booking,
                booked_by_owner=request.booked_by_owner,
            )
            created = await self.store.create(booking, idempotency_key=request.idempotency_key())
            logger.info("Booking %s submitted as %s", created.id, created.status.value)

        kind = (
            NotificationKind.BOOKING_PENDING
            if created.status == BookingStatus.PENDING_APPROVAL
            else NotificationKind.BOOKING_CONFIRMED
        )
        self._notify(kind, created, business)
        return created

    async def reschedule_booking(
        self,
        booking_id: str,
        day: date,
        time: int,
        service_id: Optional[str] = None,
        staff_id: Optional[str] = None,
        by_owner: bool = False,
    ) -> Booking:
        """Move a booking in place (same id), excluding it from its own conflict check."""
        day, time = parse_date(day), parse_time(time)
        with self.guard.hold(f"reschedule|{booking_id}"):
            new_request_id()
            booking = await self._get_booking(booking_id)
            business = await self.schedule.get_business(booking.business_id)
            apply_transition(booking.status, BookingTrigger.RESCHEDULE)
            if not by_owner:
                ensure_can_modify(booking, business, self._clock())
                ensure_within_booking_window(day, self._today(), business)

            service = await self.schedule.get_service(service_id or booking.service_id)
            staff = await self.schedule.get_staff(staff_id or booking.staff_id)
            candidate = SlotCandidate(date=day, time=time, duration=service.duration, staff_id=staff.id)
            if not by_owner:
                await self._ensure_working_hours(candidate, staff, business)

            fresh = await self._fetch_day_bookings(business.id, staff.id, day)
            ensure_no_conflict(candidate, fresh, exclude_booking_id=booking_id)

            updated = await self.store.update(
                booking_id,
                date=day,
                time=time,
                service_id=service.id,
                service_name=service.name,
                duration=service.duration,
                staff_id=staff.id,
                staff_name=staff.name,
            )
            logger.info("Booking %s rescheduled to %s %s", booking_id, day, format_time(time))

        self._notify(NotificationKind.BOOKING_UPDATED, updated, business)
        moved = (booking.date, booking.time, booking.staff_id) != (updated.date, updated.time, updated.staff_id)
        if moved:
            self._spawn(self.notify_waiting_list(business, booking.date, booking.start, booking.end))
        return updated

    async def cancel_booking(self, booking_id: str, by_owner: bool = False) -> Booking:
        """
        Cancel a booking and offer the freed time to the waiting list.

        Raises:
            PolicyViolationError: Client cancelling inside the cancellation window.
            InvalidTransitionError: Booking already cancelled or completed.
        """
        with self.guard.hold(f"cancel|{booking_id}"):
            new_request_id()
            booking = await self._get_booking(booking_id)
            business = await self.schedule.get_business(booking.business_id)
            new_status = apply_transition(booking.status, BookingTrigger.CANCEL)
            if not by_owner:
                ensure_can_modify(booking, business, self._clock())
            updated = await self.store.update(booking_id, status=new_status)

        self._notify(NotificationKind.BOOKING_CANCELLED, updated, business)
        self._spawn(self.notify_waiting_list(business, booking.date, booking.start, booking.end))
        return updated

    async def approve_booking(self, booking_id: str) -> Booking:
        booking = await self._get_booking(booking_id)
        business = await self.schedule.get_business(booking.business_id)
        new_status = apply_transition(booking.status, BookingTrigger.APPROVE)
        updated = await self.store.update(booking_id, status=new_status)
        self._notify(NotificationKind.BOOKING_CONFIRMED, updated, business)
        return updated

    async def reject_booking(self, booking_id: str) -> Booking:
        booking = await self._get_booking(booking_id)
        business = await self.schedule.get_business(booking.business_id)
        new_status = apply_transition(booking.status, BookingTrigger.REJECT)
        updated = await self.store.update(booking_id, status=new_status)
        self._notify(NotificationKind.BOOKING_CANCELLED, updated, business)
        self._spawn(self.notify_waiting_list(business, booking.date, booking.start, booking.end))
        return updated

    async def complete_booking(self, booking_id: str) -> Booking:
        booking = await self._get_booking(booking_id)
        new_status = apply_transition(booking.status, BookingTrigger.COMPLETE)
        return await self.store.update(booking_id, status=new_status)

    async def create_recurring_bookings(
        self, rule: RecurringAppointment, raise_on_failure: bool = False
    ) -> RecurringBatchResult:
        """Materialize ``rule`` up to the business horizon, reporting every date."""
        with self.guard.hold(f"recurring|{rule.id}"):
            new_request_id("RECUR")
            business = await self.schedule.get_business(rule.business_id)
            return await materialize_rule(
                rule, self.store, self._today(), business, raise_on_failure=raise_on_failure
            )

    async def find_alternatives(
        self,
        business_id: str,
        staff_id: str,
        day: date,
        service_id: str,
        exclude_booking_id: Optional[str] = None,
    ) -> AlternativeSuggestions:
        """Suggest other services or dates; never raises."""
        try:
            business = await self.schedule.get_business(business_id)
            staff = await self.schedule.get_staff(staff_id)
            service = await self.schedule.get_service(service_id)
            services = await self.schedule.list_services(business_id)
            overrides = await self.schedule.list_overrides(business_id)
        except Exception as exc:
            logger.warning("Alternative search could not load schedule data: %s", exc)
            warnings.warn(f"Alternative search degraded to no results: {exc}", StaleDataWarning, stacklevel=2)
            return AlternativeSuggestions()

        async def fetch(for_day: date) -> list[Booking]:
            return await self._fetch_day_bookings(business_id, staff_id, for_day)

        return await find_alternatives(
            day, staff, service, services, fetch,
            business=business, overrides=overrides, today=self._today(),
            exclude_booking_id=exclude_booking_id,
        )

    async def notify_waiting_list(
        self, business: Business, day: date, start: int, end: int
    ) -> WaitingListOutcome:
        """Offer the freed ``[start, end)`` on ``day`` to matching waiting clients.

        Failures are logged and reported as skipped; they never fail the caller.
        """
        outcome = WaitingListOutcome()
        try:
            entries = await self.store.filter_waiting_list(
                business_id=business.id, date=day, status=WaitingListStatus.WAITING
            )
            if not entries:
                return outcome
            bookings = await self.store.filter(business_id=business.id, date=day)
            matches, outcome.skipped = match_waiting_list(entries, start, end, bookings)
        except Exception:
            logger.exception("Waiting list check failed for %s on %s", business.id, day)
            return outcome

        for match in matches:
            entry = match.entry
            if not entry.client_phone:
                outcome.skipped += 1
                continue
            sent = await dispatch_safely(self.notifier, Notification(
                kind=NotificationKind.WAITING_LIST_SLOT,
                phone=entry.client_phone,
                client_name=entry.client_name,
                business_name=business.name,
                date=day.isoformat(),
                time=format_time(match.time),
                service_name=entry.service_name,
            ))
            if not sent:
                outcome.skipped += 1
                continue
            try:
                await self.store.update_waiting_list(
                    entry.id, status=WaitingListStatus.NOTIFIED, notified_time=match.time
                )
            except Exception:
                # The message already went out, so it still counts as notified
                logger.exception("Failed to mark waiting list entry %s as notified", entry.id)
            outcome.notified += 1

        logger.info(
            "Waiting list for %s on %s: %d notified, %d skipped",
            business.id, day, outcome.notified, outcome.skipped,
        )
        return outcome

    async def _get_booking(self, booking_id: str) -> Booking:
        booking = await self.store.get(booking_id)
        if booking is None:
            raise KeyError(f"Booking {booking_id} not found.")
        return booking

    def _notify(self, kind: NotificationKind, booking: Booking, business: Business) -> None:
        if not booking.client_phone:
            return
        self._spawn(dispatch_safely(self.notifier, Notification(
            kind=kind,
            phone=booking.client_phone,
            client_name=booking.client_name,
            business_name=business.name,
            date=booking.date.isoformat(),
            time=booking.time_label,
            service_name=booking.service_name,
        )))
