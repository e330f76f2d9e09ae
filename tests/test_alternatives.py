"""Tests for the alternative-slot search."""

from datetime import timedelta

import pytest

from booking_engine.errors import StaleDataWarning
from booking_engine.scheduling.alternatives import find_alternatives

from tests.conftest import MONDAY, make_booking, make_business, make_override, make_service

SHORT = make_service("svc-beard", 15, "Beard trim")
LONG = make_service("svc-color", 120, "Coloring")
MEDIUM = make_service("svc-cut", 30, "Haircut")


def fetcher(bookings_by_day):
    calls = []

    async def fetch(day):
        calls.append(day)
        return bookings_by_day.get(day, [])

    fetch.calls = calls
    return fetch


def nearly_full_monday():
    # Leaves 16:30-17:00 free; a 16:45 start would strand a 15 minute gap
    return [make_booking("09:00", 450, day=MONDAY)]


class TestOtherServices:
    @pytest.mark.asyncio
    async def test_shorter_services_suggested_on_same_date(self, staff, business):
        fetch = fetcher({MONDAY: nearly_full_monday()})
        result = await find_alternatives(
            MONDAY, staff, LONG, [SHORT, LONG, MEDIUM], fetch, business=business, today=MONDAY, max_dates=1
        )
        names = {alt.service.id: alt.available_slots for alt in result.services}
        assert names == {"svc-beard": 1, "svc-cut": 1}

    @pytest.mark.asyncio
    async def test_requested_service_not_suggested(self, staff, business):
        fetch = fetcher({})
        result = await find_alternatives(MONDAY, staff, MEDIUM, [MEDIUM], fetch, business=business, today=MONDAY)
        assert result.services == []


class TestOtherDates:
    @pytest.mark.asyncio
    async def test_next_working_dates_limited(self, staff, business):
        fetch = fetcher({MONDAY: nearly_full_monday()})
        result = await find_alternatives(
            MONDAY, staff, LONG, [LONG], fetch, business=business, today=MONDAY, max_dates=3
        )
        # Tue, Wed, Thu work; Fri and Sat are closed
        assert [alt.date for alt in result.dates] == [MONDAY + timedelta(days=d) for d in (1, 2, 3)]

    @pytest.mark.asyncio
    async def test_closed_dates_not_fetched(self, staff, business):
        fetch = fetcher({})
        await find_alternatives(
            MONDAY + timedelta(days=3), staff, LONG, [LONG], fetch, business=business,
            today=MONDAY, search_days=3, max_dates=3,
        )
        # Thursday requested; Friday and Saturday are closed, Sunday is scanned
        assert fetch.calls == [MONDAY + timedelta(days=3), MONDAY + timedelta(days=6)]

    @pytest.mark.asyncio
    async def test_day_off_override_skipped(self, staff, business):
        tuesday = MONDAY + timedelta(days=1)
        fetch = fetcher({})
        result = await find_alternatives(
            MONDAY, staff, LONG, [LONG], fetch, business=business,
            overrides=[make_override(day=tuesday, is_day_off=True)], today=MONDAY, max_dates=1,
        )
        assert [alt.date for alt in result.dates] == [tuesday + timedelta(days=1)]

    @pytest.mark.asyncio
    async def test_booking_window_respected(self, staff):
        business = make_business(booking_window_enabled=True, booking_window_days=2)
        fetch = fetcher({})
        result = await find_alternatives(MONDAY, staff, LONG, [LONG], fetch, business=business, today=MONDAY)
        assert [alt.date for alt in result.dates] == [MONDAY + timedelta(days=1), MONDAY + timedelta(days=2)]


class TestDegradation:
    @pytest.mark.asyncio
    async def test_fetch_failure_returns_empty_with_warning(self, staff, business):
        async def broken(day):
            raise TimeoutError("store timeout")

        with pytest.warns(StaleDataWarning):
            result = await find_alternatives(MONDAY, staff, LONG, [SHORT, LONG], broken, business=business, today=MONDAY)
        assert result.is_empty()
