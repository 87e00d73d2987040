from datetime import timedelta

import pytest

from conftest import BUSINESS_ID, MONDAY, OTHER_BUSINESS_ID, weekday_schedule
from slotbook.errors import InvalidRangeError, InvalidScheduleError, NotFoundError
from slotbook.services import blocks, overrides, schedule
from slotbook.services.slots.calculator import ScheduleDay


# ── Weekly schedule ──────────────────────────────────────────────────────


def test_schedule_always_has_seven_days(db):
    days = schedule.get_weekly_schedule(db, BUSINESS_ID)

    assert [d.weekday for d in days] == list(range(7))
    assert not any(d.is_available for d in days)
    assert days[0].start_time == "09:00"
    assert days[0].end_time == "17:00"


def test_schedule_put_replaces_week(db):
    schedule.put_weekly_schedule(db, BUSINESS_ID, weekday_schedule())
    week = weekday_schedule(start="8:00", end="12:00")
    saved = schedule.put_weekly_schedule(db, BUSINESS_ID, week)

    assert saved[1].start_time == "08:00"
    days = schedule.get_weekly_schedule(db, BUSINESS_ID)
    assert [d.is_available for d in days] == [False, True, True, True, True, True, False]
    assert days[3].end_time == "12:00"


def test_schedule_requires_each_weekday_once(db):
    week = weekday_schedule()[:6]
    with pytest.raises(InvalidScheduleError):
        schedule.put_weekly_schedule(db, BUSINESS_ID, week)

    duplicate = weekday_schedule()
    duplicate[6] = ScheduleDay(weekday=5, is_available=False, start_time="09:00", end_time="17:00")
    with pytest.raises(InvalidScheduleError):
        schedule.put_weekly_schedule(db, BUSINESS_ID, duplicate)


def test_schedule_rejects_open_day_ending_before_start(db):
    week = weekday_schedule()
    week[1] = ScheduleDay(weekday=1, is_available=True, start_time="17:00", end_time="09:00")

    with pytest.raises(InvalidScheduleError):
        schedule.put_weekly_schedule(db, BUSINESS_ID, week)


def test_schedules_are_per_business(db):
    schedule.put_weekly_schedule(db, BUSINESS_ID, weekday_schedule())

    other = schedule.get_weekly_schedule(db, OTHER_BUSINESS_ID)
    assert not any(d.is_available for d in other)


# ── Slot overrides ───────────────────────────────────────────────────────


def test_overrides_round_trip_sorted_by_time(db):
    saved = overrides.put_overrides(
        db,
        BUSINESS_ID,
        {1: [{"time": "11:00", "enabled": True}, {"time": "9:00", "enabled": False}]},
    )

    assert saved == {1: [{"time": "09:00", "enabled": False}, {"time": "11:00", "enabled": True}]}
    assert overrides.load_override_map(db, BUSINESS_ID) == {(1, "09:00"): False, (1, "11:00"): True}


def test_overrides_put_is_full_replace(db):
    overrides.put_overrides(db, BUSINESS_ID, {1: [{"time": "10:00", "enabled": False}]})
    overrides.put_overrides(db, BUSINESS_ID, {2: [{"time": "14:00", "enabled": False}]})

    assert overrides.get_overrides(db, BUSINESS_ID) == {2: [{"time": "14:00", "enabled": False}]}


def test_overrides_reject_bad_weekday(db):
    with pytest.raises(InvalidRangeError):
        overrides.put_overrides(db, BUSINESS_ID, {7: [{"time": "10:00", "enabled": False}]})


# ── Blocks ───────────────────────────────────────────────────────────────


def test_create_ranged_and_all_day_blocks(db):
    ranged = blocks.create_block(db, BUSINESS_ID, MONDAY, "12:00", "13:00", reason="Lunch")
    all_day = blocks.create_block(
        db, BUSINESS_ID, MONDAY + timedelta(days=1), "10:00", "11:00", is_all_day=True
    )

    assert ranged.start_time == "12:00"
    assert ranged.reason == "Lunch"
    assert all_day.is_all_day
    assert all_day.start_time is None and all_day.end_time is None
    assert [b.id for b in blocks.list_blocks(db, BUSINESS_ID)] == [ranged.id, all_day.id]
    assert [b.id for b in blocks.list_blocks(db, BUSINESS_ID, MONDAY, MONDAY)] == [ranged.id]


def test_ranged_block_needs_ordered_times(db):
    with pytest.raises(InvalidRangeError):
        blocks.create_block(db, BUSINESS_ID, MONDAY, "13:00", "12:00")
    with pytest.raises(InvalidRangeError):
        blocks.create_block(db, BUSINESS_ID, MONDAY, "13:00", None)


def test_block_slot_covers_one_cell(db):
    block = blocks.block_slot(db, BUSINESS_ID, MONDAY, "15:00", duration_minutes=30)

    assert (block.start_time, block.end_time) == ("15:00", "15:30")
    assert block.reason == blocks.CALENDAR_BLOCK_REASON


def test_delete_block(db):
    block = blocks.create_block(db, BUSINESS_ID, MONDAY, is_all_day=True)

    with pytest.raises(NotFoundError):
        blocks.delete_block(db, block.id, business_id=OTHER_BUSINESS_ID)

    blocks.delete_block(db, block.id, business_id=BUSINESS_ID)
    assert blocks.list_blocks(db, BUSINESS_ID) == []

    with pytest.raises(NotFoundError):
        blocks.delete_block(db, block.id)
