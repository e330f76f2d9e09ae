"""
Offline console demo: runs booking scenarios against in-memory collaborators.

Uses the real resolver, slot generator, conflict detector, approval policy
and recurring expansion. No network, no hosted backend.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario recurring
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timedelta

from booking_engine.booking_flow import BookingFlow
from booking_engine.errors import ConflictError
from booking_engine.schemas.booking_schema import BookingRequest, Frequency, RecurringAppointment
from booking_engine.schemas.schedule_schema import (
    Business,
    DayPlan,
    FeatureFlags,
    ScheduleOverride,
    Service,
    Shift,
    Staff,
    WorkingHours,
)
from booking_engine.stores.booking_store import InMemoryBookingStore
from booking_engine.stores.notifications import RecordingNotificationSink
from booking_engine.stores.schedule_provider import InMemoryScheduleProvider
from booking_engine.utils import format_time, parse_time

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

# Sunday; every scenario runs relative to this clock
DEMO_NOW = datetime(2024, 6, 9, 8, 0)
BUSINESS_ID = "biz-demo"
STAFF_ID = "staff-dana"


def _weekday_hours() -> WorkingHours:
    full_day = DayPlan(enabled=True, shifts=[Shift(start="09:00", end="17:00")])
    split_day = DayPlan(
        enabled=True,
        shifts=[Shift(start="09:00", end="13:00"), Shift(start="16:00", end="20:00")],
    )
    return WorkingHours(
        sunday=full_day,
        monday=full_day,
        tuesday=split_day,
        wednesday=full_day,
        thursday=full_day,
        friday=DayPlan(enabled=True, shifts=[Shift(start="08:00", end="13:00")]),
        saturday=DayPlan(enabled=False),
    )


def build_demo() -> tuple[BookingFlow, InMemoryBookingStore, RecordingNotificationSink]:
    """Seed one business, one staff member and three services."""
    schedule = InMemoryScheduleProvider()
    schedule.add_business(
        Business(
            id=BUSINESS_ID,
            name="Demo Barbershop",
            working_hours=_weekday_hours(),
            cancellation_hours_limit=24,
            booking_window_enabled=True,
            booking_window_days=30,
        ),
        FeatureFlags(new_client_approval=True, recurring_bookings=True, waiting_list=True),
    )
    schedule.add_staff(Staff(id=STAFF_ID, business_id=BUSINESS_ID, name="Dana", uses_business_hours=True))
    schedule.add_service(Service(id="svc-cut", business_id=BUSINESS_ID, name="Haircut", duration=30))
    schedule.add_service(Service(id="svc-beard", business_id=BUSINESS_ID, name="Beard trim", duration=15))
    schedule.add_service(Service(id="svc-color", business_id=BUSINESS_ID, name="Coloring", duration=90))
    schedule.add_override(ScheduleOverride(
        business_id=BUSINESS_ID, date=DEMO_NOW.date() + timedelta(days=4), is_day_off=True,
    ))

    store = InMemoryBookingStore()
    sink = RecordingNotificationSink()
    flow = BookingFlow(store, schedule, sink, clock=lambda: DEMO_NOW)
    return flow, store, sink


def say(text: str) -> None:
    print(f"{GREEN}{text}{RESET}")


def log(text: str) -> None:
    print(f"{DIM}  >> {text}{RESET}")


def show_slots(label: str, slots: list[int]) -> None:
    rendered = ", ".join(format_time(s) for s in slots) or "none"
    print(f"{BOLD}{label}:{RESET} {rendered}")


def _request(day: date, time: str, phone: str, name: str, service_id: str = "svc-cut") -> BookingRequest:
    return BookingRequest(
        business_id=BUSINESS_ID,
        staff_id=STAFF_ID,
        service_id=service_id,
        client_phone=phone,
        client_name=name,
        date=day,
        time=time,
    )


async def scenario_booking() -> None:
    flow, _, sink = build_demo()
    day = DEMO_NOW.date() + timedelta(days=1)

    show_slots(f"Haircut slots on {day}", await flow.available_slots(BUSINESS_ID, STAFF_ID, day, "svc-cut"))

    first = await flow.submit_booking(_request(day, "10:00", "050-1234567", "Avi"))
    say(f"First booking {first.id}: {first.status.value} (first booking: {first.is_first_booking})")
    approved = await flow.approve_booking(first.id)
    say(f"Owner approved {approved.id}: {approved.status.value}")

    show_slots("After the 10:00 booking", await flow.available_slots(BUSINESS_ID, STAFF_ID, day, "svc-cut"))

    later = day + timedelta(days=2)
    second = await flow.submit_booking(_request(later, "11:00", "0501234567", "Avi"))
    say(f"Same-week booking {second.id}: {second.status.value}")

    await flow.drain_notifications()
    for notification in sink.sent:
        log(f"notify {notification.phone}: {notification.kind.value} {notification.date} {notification.time}")


async def scenario_conflict() -> None:
    flow, _, _ = build_demo()
    day = DEMO_NOW.date() + timedelta(days=1)

    slots = await flow.available_slots(BUSINESS_ID, STAFF_ID, day, "svc-cut")
    chosen = format_time(slots[0])
    say(f"Both clients see {chosen} as free")

    await flow.submit_booking(_request(day, chosen, "050-1111111", "Client A"))
    say("Client A booked first")
    try:
        await flow.submit_booking(_request(day, chosen, "050-2222222", "Client B"))
    except ConflictError as exc:
        print(f"{RED}Client B rejected: {exc}{RESET}")
        show_slots("Refreshed slots", await flow.available_slots(BUSINESS_ID, STAFF_ID, day, "svc-cut"))


async def scenario_recurring() -> None:
    flow, store, _ = build_demo()
    rule = RecurringAppointment(
        id="rule-1",
        business_id=BUSINESS_ID,
        client_name="Regular",
        client_phone="050-3333333",
        service_id="svc-cut",
        service_name="Haircut",
        staff_id=STAFF_ID,
        day_of_week=3,
        time=parse_time("12:00"),
        duration=30,
        frequency=Frequency.BIWEEKLY,
    )
    result = await flow.create_recurring_bookings(rule)
    say(f"Recurring rule: {result.succeeded} created, {result.failed} failed")
    for occurrence in result.occurrences:
        marker = "ok" if occurrence.success else f"failed ({occurrence.error})"
        log(f"{occurrence.date} {marker}")
    rows = await store.filter(business_id=BUSINESS_ID)
    log(f"{len(rows)} booking rows in store")


async def scenario_alternatives() -> None:
    flow, _, _ = build_demo()
    day = DEMO_NOW.date() + timedelta(days=5)  # Friday, short day

    for time in ("08:00", "09:30", "11:00"):
        await flow.submit_booking(BookingRequest(
            business_id=BUSINESS_ID, staff_id=STAFF_ID, service_id="svc-color",
            client_phone=f"050-44{time.replace(':', '')}", client_name="Filler",
            date=day, time=time, booked_by_owner=True,
        ))
    show_slots(f"Coloring slots on {day}", await flow.available_slots(BUSINESS_ID, STAFF_ID, day, "svc-color"))

    suggestions = await flow.find_alternatives(BUSINESS_ID, STAFF_ID, day, "svc-color")
    for alt in suggestions.services:
        say(f"Try {alt.service.name} on {day}: {alt.available_slots} slot(s)")
    for alt in suggestions.dates:
        say(f"Try {alt.date}: {alt.available_slots} slot(s)")
    if suggestions.is_empty():
        print(f"{YELLOW}No alternatives found{RESET}")


SCENARIOS = {
    "booking": scenario_booking,
    "conflict": scenario_conflict,
    "recurring": scenario_recurring,
    "alternatives": scenario_alternatives,
}


def run(scenario: str) -> None:
    print(f"{BOLD}=== {scenario} ==={RESET}")
    asyncio.run(SCENARIOS[scenario]())


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking engine demo.")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="booking",
        help="Which scenario to run (default: booking).",
    )
    args = parser.parse_args()
    run(args.scenario)


if __name__ == "__main__":
    if len(sys.argv) == 1:
        run("booking")
    else:
        main()
