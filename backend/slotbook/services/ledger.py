# backend/slotbook/services/ledger.py
"""
Booking ledger.

Confirmed, paid bookings. The engine reads the ledger when compiling a
grid and writes one row when a reservation lock is promoted; the unique
(business_id, slot_date, slot_time) key keeps a cell from being sold twice.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Bookings as DBBooking


@dataclass(frozen=True)
class BookingRef:
    booking_id: int
    business_id: int
    date: date
    time: str
    duration_minutes: int
    order_id: Optional[str] = None


def to_ref(booking: DBBooking) -> BookingRef:
    return BookingRef(
        booking_id=booking.id,
        business_id=booking.business_id,
        date=booking.slot_date,
        time=booking.slot_time,
        duration_minutes=booking.duration_minutes,
        order_id=booking.order_id,
    )


def booked_keys(
    db: Session,
    business_id: int,
    start_date: date,
    end_date: date,
) -> set[tuple[date, str]]:
    """(date, "HH:MM") of every booking in [start_date, end_date]."""
    rows = (
        db.query(DBBooking.slot_date, DBBooking.slot_time)
        .filter(
            DBBooking.business_id == business_id,
            DBBooking.slot_date >= start_date,
            DBBooking.slot_date <= end_date,
        )
        .all()
    )
    return {(row.slot_date, row.slot_time) for row in rows}


def list_bookings(
    db: Session,
    business_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[DBBooking]:
    query = db.query(DBBooking).filter(DBBooking.business_id == business_id)
    if start_date is not None:
        query = query.filter(DBBooking.slot_date >= start_date)
    if end_date is not None:
        query = query.filter(DBBooking.slot_date <= end_date)
    return query.order_by(DBBooking.slot_date, DBBooking.slot_time).all()


def find_by_lock(db: Session, lock_id: str) -> Optional[DBBooking]:
    return db.query(DBBooking).filter(DBBooking.lock_id == lock_id).first()


def add_booking(
    db: Session,
    business_id: int,
    slot_date: date,
    slot_time: str,
    duration_minutes: int,
    order_id: Optional[str] = None,
    lock_id: Optional[str] = None,
) -> DBBooking:
    """
    Stage a booking in the current transaction.

    The caller commits; a duplicate cell surfaces as IntegrityError on flush.
    """
    booking = DBBooking(
        business_id=business_id,
        slot_date=slot_date,
        slot_time=slot_time,
        duration_minutes=duration_minutes,
        order_id=order_id,
        lock_id=lock_id,
    )
    db.add(booking)
    db.flush()
    return booking
