"""Tests for resolving effective working hours."""

import pytest

from booking_engine.schemas.schedule_schema import DayPlan, Shift, WorkingHours
from booking_engine.scheduling.schedule_resolver import merge_shifts, resolve_day

from tests.conftest import MONDAY, SUNDAY, make_business, make_hours, make_override, make_staff


def spans(plan: DayPlan) -> list[tuple[int, int]]:
    return [(s.start, s.end) for s in plan.shifts]


class TestWeeklySchedule:
    def test_enabled_day_returns_shift(self, staff, business):
        plan = resolve_day(MONDAY, staff, business)
        assert plan.enabled
        assert spans(plan) == [(540, 1020)]

    def test_disabled_day_is_closed(self, business):
        hours = make_hours()
        hours = hours.model_copy(update={"monday": DayPlan(enabled=False, shifts=[Shift(start="09:00", end="12:00")])})
        plan = resolve_day(MONDAY, make_staff(schedule=hours), business)
        assert not plan.enabled
        assert plan.shifts == []

    def test_missing_day_is_closed(self, business):
        plan = resolve_day(MONDAY, make_staff(schedule=make_hours(days=("sunday",))), business)
        assert not plan.enabled

    def test_no_schedule_is_closed(self):
        staff = make_staff(schedule=WorkingHours())
        assert not resolve_day(MONDAY, staff).enabled

    def test_legacy_start_end_shape(self, business):
        hours = WorkingHours.model_validate({"monday": {"enabled": True, "start": "08:00", "end": "12:00"}})
        plan = resolve_day(MONDAY, make_staff(schedule=hours), business)
        assert spans(plan) == [(480, 720)]

    def test_split_shifts_kept_sorted(self, business):
        hours = WorkingHours.model_validate({"sunday": {"enabled": True, "shifts": [
            {"start": "16:00", "end": "20:00"}, {"start": "09:00", "end": "13:00"},
        ]}})
        plan = resolve_day(SUNDAY, make_staff(schedule=hours), business)
        assert spans(plan) == [(540, 780), (960, 1200)]

    def test_uses_business_hours_when_staff_copy_missing(self):
        business = make_business(hours=make_hours("10:00", "14:00"))
        staff = make_staff(uses_business_hours=True)
        assert spans(resolve_day(MONDAY, staff, business)) == [(600, 840)]


class TestOverridePrecedence:
    def test_staff_override_beats_all_staff_override(self, staff, business):
        overrides = [
            make_override(shifts=[("09:00", "17:00")]),
            make_override(staff_id=staff.id, shifts=[("10:00", "12:00")]),
        ]
        assert spans(resolve_day(MONDAY, staff, business, overrides)) == [(600, 720)]

    def test_all_staff_override_beats_weekly(self, staff, business):
        overrides = [make_override(shifts=[("12:00", "15:00")])]
        assert spans(resolve_day(MONDAY, staff, business, overrides)) == [(720, 900)]

    def test_override_opens_closed_weekday(self, staff, business):
        saturday = MONDAY.replace(day=15)
        overrides = [make_override(day=saturday, shifts=[("10:00", "13:00")])]
        plan = resolve_day(saturday, staff, business, overrides)
        assert plan.enabled
        assert spans(plan) == [(600, 780)]

    def test_day_off_with_shifts_is_closed(self, staff, business):
        overrides = [make_override(staff_id=staff.id, shifts=[("09:00", "12:00")], is_day_off=True)]
        plan = resolve_day(MONDAY, staff, business, overrides)
        assert not plan.enabled
        assert plan.shifts == []

    def test_all_staff_day_off(self, staff, business):
        plan = resolve_day(MONDAY, staff, business, [make_override(is_day_off=True)])
        assert not plan.enabled

    def test_other_staff_override_ignored(self, staff, business):
        overrides = [make_override(staff_id="someone-else", is_day_off=True)]
        assert resolve_day(MONDAY, staff, business, overrides).enabled

    def test_other_business_override_ignored(self, staff, business):
        overrides = [make_override(is_day_off=True, business_id="biz-2")]
        assert resolve_day(MONDAY, staff, business, overrides).enabled

    def test_other_date_override_ignored(self, staff, business):
        overrides = [make_override(day=SUNDAY, is_day_off=True)]
        assert resolve_day(MONDAY, staff, business, overrides).enabled

    def test_empty_override_falls_through(self, staff, business):
        overrides = [make_override(staff_id=staff.id), make_override(shifts=[("11:00", "13:00")])]
        assert spans(resolve_day(MONDAY, staff, business, overrides)) == [(660, 780)]


class TestMergeShifts:
    def test_overlapping_shifts_are_unioned(self):
        merged = merge_shifts([Shift(start="09:00", end="12:00"), Shift(start="11:00", end="14:00")])
        assert [(s.start, s.end) for s in merged] == [(540, 840)]

    def test_touching_shifts_are_joined(self):
        merged = merge_shifts([Shift(start="13:00", end="15:00"), Shift(start="09:00", end="13:00")])
        assert [(s.start, s.end) for s in merged] == [(540, 900)]

    def test_contained_shift_absorbed(self):
        merged = merge_shifts([Shift(start="09:00", end="17:00"), Shift(start="10:00", end="11:00")])
        assert [(s.start, s.end) for s in merged] == [(540, 1020)]

    def test_disjoint_shifts_untouched(self):
        merged = merge_shifts([Shift(start="09:00", end="10:00"), Shift(start="11:00", end="12:00")])
        assert len(merged) == 2


class TestShiftValidation:
    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            Shift(start="12:00", end="09:00")

    def test_zero_length_rejected(self):
        with pytest.raises(ValueError):
            Shift(start="09:00", end="09:00")

    def test_unknown_weekday_key_rejected(self):
        with pytest.raises(ValueError):
            WorkingHours.model_validate({"funday": {"enabled": True}})
