"""
Booking engine entry point.

Runs one of the offline console scenarios, or prints the bookable slots
for a day of the seeded demo business.

Usage:
    Scenario:  python main.py booking | conflict | recurring | alternatives
    Slots:     python main.py slots 2024-06-10 svc-color
"""

import argparse
import asyncio
import logging

from booking_engine.config import settings
from booking_engine.utils import format_time, parse_date

logger = logging.getLogger(__name__)


def _run_scenario(name: str) -> None:
    """Start an offline console scenario (no backend required)."""
    from console_demo import run

    run(name)


def _print_slots(day: str, service_id: str) -> None:
    from console_demo import BUSINESS_ID, STAFF_ID, build_demo

    flow, _, _ = build_demo()
    slots = asyncio.run(flow.available_slots(BUSINESS_ID, STAFF_ID, parse_date(day), service_id))
    logger.info("%d slot(s) for %s on %s", len(slots), service_id, day)
    print(" ".join(format_time(s) for s in slots) or "no slots")


def main() -> None:
    from console_demo import SCENARIOS

    parser = argparse.ArgumentParser(description=f"{settings.app_name} console.")
    parser.add_argument(
        "command",
        nargs="?",
        default="booking",
        choices=sorted(SCENARIOS) + ["slots"],
        help="Scenario to run, or 'slots' to list availability.",
    )
    parser.add_argument("day", nargs="?", help="Date for the 'slots' command.")
    parser.add_argument("service", nargs="?", default="svc-cut", help="Service id for 'slots'.")
    args = parser.parse_args()

    if args.command == "slots":
        if not args.day:
            parser.error("'slots' needs a date, e.g. 2024-06-10")
        _print_slots(args.day, args.service)
    else:
        _run_scenario(args.command)


if __name__ == "__main__":
    main()
