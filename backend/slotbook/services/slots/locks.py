"""
Reservation lock manager.

A lock is a short-lived exclusive hold on one (business, date, time) cell
taken at the start of checkout.

Exclusivity is enforced by the database, never by an in-process mutex:
  - reservation_locks has one row per cell key (unique constraint);
  - a first hold INSERTs the row, losers get IntegrityError;
  - a dead row (released, expired, or promoted with no booking left) is
    taken over by a single conditional UPDATE, so exactly one concurrent
    caller sees rowcount == 1.

Expiry is lazy: a held row whose expires_at has passed is treated as absent
by every read. No sweeper is required.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import uuid4

from sqlalchemy import and_, exists, insert, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import LockExpiredError, SlotUnavailableError
from ...models import Bookings as DBBooking
from ...models import ReservationLocks as DBLock
from ..events import emit_event
from ..ledger import BookingRef, add_booking, find_by_lock, to_ref
from .calculator import SlotStatus
from .config import EngineConfig, get_engine_config, normalize_time_str, utcnow
from .grid import evaluate_cell

logger = logging.getLogger(__name__)

HELD = "held"
RELEASED = "released"
PROMOTED = "promoted"


@dataclass(frozen=True)
class LockHandle:
    lock_id: str
    business_id: int
    date: date
    time: str
    duration_minutes: int
    created_at: datetime
    expires_at: datetime


def _to_handle(row: DBLock) -> LockHandle:
    return LockHandle(
        lock_id=row.lock_id,
        business_id=row.business_id,
        date=row.slot_date,
        time=row.slot_time,
        duration_minutes=row.duration_minutes,
        created_at=row.created_at,
        expires_at=row.expires_at,
    )


def _cell_key(business_id: int, slot_date: date, slot_time: str):
    return and_(
        DBLock.business_id == business_id,
        DBLock.slot_date == slot_date,
        DBLock.slot_time == slot_time,
    )


# ── Acquire ──────────────────────────────────────────────────────────────


def acquire_lock(
    db: Session,
    business_id: int,
    slot_date: date,
    slot_time: str,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> LockHandle:
    """
    Grant an exclusive hold on one cell or fail immediately.

    The start time may come from any grid step; it only has to fit in the
    open hours of that date.

    Raises:
        SlotUnavailableError: the cell is not offered, is booked, blocked,
            or already locked by a live hold.
        InvalidRangeError: malformed time or non-positive duration.
    """
    config = config or get_engine_config()
    duration = duration_minutes if duration_minutes is not None else config.duration_minutes
    now = now or utcnow()
    slot_time = normalize_time_str(slot_time)

    entry = evaluate_cell(db, business_id, slot_date, slot_time, duration, now)
    # end the read transaction before writing
    db.rollback()

    if entry is None:
        logger.warning(f"Lock refused: {slot_date} {slot_time} is not offered by business {business_id}")
        raise SlotUnavailableError(
            f"{slot_date} {slot_time} is not an available time for this business",
            business_id=business_id,
        )
    if entry.status != SlotStatus.AVAILABLE:
        logger.warning(
            f"Lock refused: {slot_date} {slot_time} for business {business_id} is {entry.status.value}"
        )
        raise SlotUnavailableError(
            f"The selected time slot {slot_date} {slot_time} is no longer available",
            business_id=business_id,
        )

    lock_id = uuid4().hex
    expires_at = now + timedelta(minutes=config.lock_ttl_minutes)
    values = dict(
        lock_id=lock_id,
        duration_minutes=duration,
        state=HELD,
        created_at=now,
        expires_at=expires_at,
    )

    try:
        db.execute(
            insert(DBLock).values(
                business_id=business_id,
                slot_date=slot_date,
                slot_time=slot_time,
                **values,
            )
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        if not _take_over_dead_row(db, business_id, slot_date, slot_time, values, now):
            logger.warning(f"Lock contention lost: business {business_id} {slot_date} {slot_time}")
            raise SlotUnavailableError(
                f"The selected time slot {slot_date} {slot_time} is no longer available",
                business_id=business_id,
            )

    logger.info(
        f"Lock {lock_id} acquired: business {business_id} {slot_date} {slot_time}, expires {expires_at}"
    )
    emit_event("slot_locked", {
        "lock_id": lock_id,
        "business_id": business_id,
        "date": slot_date.isoformat(),
        "time": slot_time,
        "expires_at": expires_at.isoformat(),
    })

    return LockHandle(
        lock_id=lock_id,
        business_id=business_id,
        date=slot_date,
        time=slot_time,
        duration_minutes=duration,
        created_at=now,
        expires_at=expires_at,
    )


def _take_over_dead_row(
    db: Session,
    business_id: int,
    slot_date: date,
    slot_time: str,
    values: dict,
    now: datetime,
) -> bool:
    """Atomically reuse the key row if no live hold or booking owns it."""
    booking_exists = exists().where(
        DBBooking.business_id == business_id,
        DBBooking.slot_date == slot_date,
        DBBooking.slot_time == slot_time,
    )
    result = db.execute(
        update(DBLock)
        .where(
            _cell_key(business_id, slot_date, slot_time),
            or_(
                DBLock.state == RELEASED,
                and_(DBLock.state == HELD, DBLock.expires_at <= now),
                and_(DBLock.state == PROMOTED, ~booking_exists),
            ),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        return False
    db.commit()
    return True


# ── Release ──────────────────────────────────────────────────────────────


def release_lock(db: Session, lock_id: str, now: Optional[datetime] = None) -> None:
    """
    Release a hold early (customer cancelled or left checkout).

    Idempotent: unknown, expired, released and promoted locks are left as is.
    """
    now = now or utcnow()
    result = db.execute(
        update(DBLock)
        .where(
            DBLock.lock_id == lock_id,
            DBLock.state == HELD,
            DBLock.expires_at > now,
        )
        .values(state=RELEASED)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if result.rowcount:
        logger.info(f"Lock {lock_id} released")
        emit_event("slot_released", {"lock_id": lock_id})
    else:
        logger.debug(f"Release of lock {lock_id} was a no-op")


# ── Promote ──────────────────────────────────────────────────────────────


def promote_lock(
    db: Session,
    lock_id: str,
    order_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingRef:
    """
    Turn a live hold into a permanent booking once payment is confirmed.

    Promoting an already promoted lock returns the same booking, so
    repeated payment notifications are harmless.

    Raises:
        LockExpiredError: the hold expired, was released, or never existed;
            payment went through but the slot must be re-validated.
        SlotUnavailableError: the ledger already holds a booking for the cell.
    """
    now = now or utcnow()

    existing = find_by_lock(db, lock_id)
    if existing:
        return to_ref(existing)

    result = db.execute(
        update(DBLock)
        .where(
            DBLock.lock_id == lock_id,
            DBLock.state == HELD,
            DBLock.expires_at > now,
        )
        .values(state=PROMOTED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        # a concurrent promotion of the same lock may have just committed
        existing = find_by_lock(db, lock_id)
        if existing:
            return to_ref(existing)
        logger.warning(f"Promotion refused: lock {lock_id} is no longer live")
        raise LockExpiredError(
            f"Reservation {lock_id} expired before payment was confirmed",
            lock_id=lock_id,
        )

    lock = db.query(DBLock).filter(DBLock.lock_id == lock_id).one()
    try:
        booking = add_booking(
            db,
            business_id=lock.business_id,
            slot_date=lock.slot_date,
            slot_time=lock.slot_time,
            duration_minutes=lock.duration_minutes,
            order_id=order_id,
            lock_id=lock_id,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.error(f"Promotion of lock {lock_id} collided with an existing booking")
        raise SlotUnavailableError(
            "The selected time slot has already been booked",
            business_id=lock.business_id,
        )

    ref = to_ref(booking)
    logger.info(
        f"Lock {lock_id} promoted to booking {ref.booking_id} "
        f"(business {ref.business_id} {ref.date} {ref.time}, order {order_id})"
    )
    emit_event("booking_confirmed", {
        "booking_id": ref.booking_id,
        "lock_id": lock_id,
        "business_id": ref.business_id,
        "date": ref.date.isoformat(),
        "time": ref.time,
        "order_id": order_id,
    })
    return ref


# ── Read / housekeeping ──────────────────────────────────────────────────


def get_lock(db: Session, lock_id: str, now: Optional[datetime] = None) -> Optional[LockHandle]:
    """The hold if it is still live, else None."""
    now = now or utcnow()
    row = (
        db.query(DBLock)
        .filter(
            DBLock.lock_id == lock_id,
            DBLock.state == HELD,
            DBLock.expires_at > now,
        )
        .first()
    )
    return _to_handle(row) if row else None


def purge_expired_locks(db: Session, now: Optional[datetime] = None) -> int:
    """
    Delete released and expired rows.

    Housekeeping only; correctness never depends on it running.
    """
    now = now or utcnow()
    deleted = (
        db.query(DBLock)
        .filter(
            or_(
                DBLock.state == RELEASED,
                and_(DBLock.state == HELD, DBLock.expires_at <= now),
            )
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info(f"Purged {deleted} dead reservation lock(s)")
    return deleted
