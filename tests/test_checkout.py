import pytest

from conftest import MONDAY, NOW
from slotbook.errors import CheckoutSlotLostError, InvalidRangeError
from slotbook.services import checkout, ledger
from slotbook.services.slots import locks
from slotbook.services.slots.calculator import SlotStatus
from slotbook.services.slots.grid import get_available_times, get_slot_grid


def status_at(db, business_id, time):
    entries = get_slot_grid(db, business_id, MONDAY, MONDAY, now=NOW)
    return {e.time: e.status for e in entries}[time]


def test_reserve_locks_one_slot_per_business(db, two_businesses):
    first, second = two_businesses
    hold = checkout.reserve_checkout(
        db,
        [
            checkout.SlotSelection(first, MONDAY, "10:00"),
            checkout.SlotSelection(second, MONDAY, "11:00"),
        ],
        now=NOW,
    )

    assert [sub.business_id for sub in hold.sub_orders] == [first, second]
    assert len(set(hold.lock_ids)) == 2
    assert status_at(db, first, "10:00") == SlotStatus.LOCKED
    assert status_at(db, second, "11:00") == SlotStatus.LOCKED


def test_lost_slot_releases_earlier_locks(db, two_businesses):
    first, second = two_businesses
    taken = locks.acquire_lock(db, second, MONDAY, "11:00", now=NOW)

    with pytest.raises(CheckoutSlotLostError) as excinfo:
        checkout.reserve_checkout(
            db,
            [
                checkout.SlotSelection(first, MONDAY, "10:00", business_name="Studio A"),
                checkout.SlotSelection(second, MONDAY, "11:00", business_name="Barber B"),
            ],
            now=NOW,
        )

    error = excinfo.value
    assert error.business_id == second
    assert "Barber B" in str(error)
    assert [s.business_id for s in error.remaining] == [first]
    assert status_at(db, first, "10:00") == SlotStatus.AVAILABLE
    assert locks.get_lock(db, taken.lock_id, now=NOW) is not None


def test_each_sub_order_is_paid_independently(db, two_businesses):
    first, second = two_businesses
    hold = checkout.reserve_checkout(
        db,
        [
            checkout.SlotSelection(first, MONDAY, "10:00"),
            checkout.SlotSelection(second, MONDAY, "10:00"),
        ],
        now=NOW,
    )

    checkout.confirm_sub_order(db, hold.sub_orders[0].lock.lock_id, order_id="sub-1", now=NOW)

    assert status_at(db, first, "10:00") == SlotStatus.BOOKED
    assert status_at(db, second, "10:00") == SlotStatus.LOCKED
    assert ledger.list_bookings(db, second) == []


def test_abandon_releases_everything(db, two_businesses):
    first, second = two_businesses
    hold = checkout.reserve_checkout(
        db,
        [
            checkout.SlotSelection(first, MONDAY, "10:00"),
            checkout.SlotSelection(second, MONDAY, "12:00"),
        ],
        now=NOW,
    )

    checkout.abandon_checkout(db, hold.lock_ids, now=NOW)
    checkout.abandon_checkout(db, hold.lock_ids, now=NOW)

    assert status_at(db, first, "10:00") == SlotStatus.AVAILABLE
    assert status_at(db, second, "12:00") == SlotStatus.AVAILABLE


def test_cart_validation(db, two_businesses):
    first, _ = two_businesses

    with pytest.raises(InvalidRangeError):
        checkout.reserve_checkout(db, [], now=NOW)
    with pytest.raises(InvalidRangeError):
        checkout.reserve_checkout(
            db,
            [
                checkout.SlotSelection(first, MONDAY, "10:00"),
                checkout.SlotSelection(first, MONDAY, "11:00"),
            ],
            now=NOW,
        )


def test_half_hour_time_from_customer_picker_can_be_reserved(db, two_businesses):
    first, second = two_businesses
    picked = next(
        row
        for row in get_available_times(db, first, MONDAY, MONDAY, slot_interval_minutes=30, now=NOW)
        if row["available"] and row["time"].endswith(":30")
    )

    hold = checkout.reserve_checkout(
        db,
        [
            checkout.SlotSelection(first, picked["date"], picked["time"]),
            checkout.SlotSelection(second, MONDAY, "13:30"),
        ],
        now=NOW,
    )

    assert [sub.lock.time for sub in hold.sub_orders] == [picked["time"], "13:30"]
    rows = get_available_times(db, first, MONDAY, MONDAY, slot_interval_minutes=30, now=NOW)
    assert {row["time"]: row["available"] for row in rows}[picked["time"]] is False
