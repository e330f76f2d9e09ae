"""Tests for matching waiting-list entries to freed time."""

from booking_engine.schemas.booking_schema import WaitingListEntry, WaitingListStatus
from booking_engine.scheduling.waiting_list import find_first_available_slot, match_waiting_list

from tests.conftest import BUSINESS_ID, MONDAY, make_booking


def make_entry(entry_id: str = "WL-1", **kwargs) -> WaitingListEntry:
    return WaitingListEntry(
        id=entry_id,
        business_id=BUSINESS_ID,
        date=MONDAY,
        client_name="Waiting",
        client_phone=kwargs.pop("client_phone", "050-5555555"),
        **kwargs,
    )


class TestFindFirstAvailableSlot:
    def test_start_of_range_when_free(self):
        assert find_first_available_slot(600, 660, 30, []) == 600

    def test_skips_occupied_time(self):
        bookings = [make_booking("10:00", 30)]
        assert find_first_available_slot(600, 690, 30, bookings, granularity=15) == 630

    def test_none_when_nothing_fits(self):
        assert find_first_available_slot(600, 630, 45, []) is None

    def test_ignores_cancelled_bookings(self):
        from booking_engine.schemas.booking_schema import BookingStatus

        bookings = [make_booking("10:00", 60, status=BookingStatus.CANCELLED)]
        assert find_first_available_slot(600, 660, 60, bookings) == 600


class TestMatchWaitingList:
    def test_full_day_entry_matched(self):
        matches, skipped = match_waiting_list([make_entry()], 600, 660, [])
        assert [(m.entry.id, m.time) for m in matches] == [("WL-1", 600)]
        assert skipped == 0

    def test_range_clipped_to_preference(self):
        entry = make_entry(from_time="10:30", to_time="12:00")
        matches, _ = match_waiting_list([entry], 600, 660, [])
        assert matches[0].time == 630

    def test_disjoint_preference_skipped(self):
        entry = make_entry(from_time="12:00", to_time="14:00")
        matches, skipped = match_waiting_list([entry], 600, 660, [])
        assert matches == []
        assert skipped == 1

    def test_service_too_long_skipped(self):
        entry = make_entry(service_duration=90)
        matches, skipped = match_waiting_list([entry], 600, 660, [])
        assert matches == []
        assert skipped == 1

    def test_notified_entries_ignored(self):
        entry = make_entry(status=WaitingListStatus.NOTIFIED)
        assert match_waiting_list([entry], 600, 660, []) == ([], 0)

    def test_each_entry_considered(self):
        entries = [make_entry("WL-1"), make_entry("WL-2", from_time="15:00", to_time="16:00"), make_entry("WL-3")]
        matches, skipped = match_waiting_list(entries, 600, 660, [])
        assert [m.entry.id for m in matches] == ["WL-1", "WL-3"]
        assert skipped == 1


class TestLegacyEntries:
    def test_missing_fields_take_defaults(self):
        entry = WaitingListEntry.model_validate({
            "business_id": BUSINESS_ID,
            "date": "10/06/2024",
            "from_time": None,
            "to_time": None,
            "service_duration": None,
        })
        assert entry.date == MONDAY
        assert (entry.from_time, entry.to_time, entry.service_duration) == (0, 1439, 30)
        assert entry.status == WaitingListStatus.WAITING
