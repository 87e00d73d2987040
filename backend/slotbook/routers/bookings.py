# backend/slotbook/routers/bookings.py
# Reservation locks taken during checkout, and the booking ledger (read-only).

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import SlotEngineError, http_status_for
from ..schemas.locks import BookingRead, LockCreate, LockPromote, LockRead
from ..services import ledger
from ..services.slots import locks

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _http(exc: SlotEngineError) -> HTTPException:
    return HTTPException(status_code=http_status_for(exc), detail=str(exc))


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    business_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    rows = ledger.list_bookings(db, business_id, start_date, end_date)
    return [ledger.to_ref(row) for row in rows]


@router.post("/lock", response_model=LockRead, status_code=status.HTTP_201_CREATED)
def acquire_lock(data: LockCreate, db: Session = Depends(get_db)):
    """Hold a slot while the customer pays. Fails fast with 409 when taken."""
    try:
        return locks.acquire_lock(
            db,
            data.business_id,
            data.date,
            data.time,
            duration_minutes=data.duration_minutes,
        )
    except SlotEngineError as exc:
        raise _http(exc)


@router.get("/lock/{lock_id}", response_model=LockRead)
def get_lock(lock_id: str, db: Session = Depends(get_db)):
    handle = locks.get_lock(db, lock_id)
    if not handle:
        raise HTTPException(status_code=404, detail="Not found")
    return handle


@router.delete("/lock/{lock_id}", status_code=status.HTTP_204_NO_CONTENT)
def release_lock(lock_id: str, db: Session = Depends(get_db)):
    locks.release_lock(db, lock_id)


@router.post("/lock/{lock_id}/promote", response_model=BookingRead)
def promote_lock(
    lock_id: str,
    data: Optional[LockPromote] = None,
    db: Session = Depends(get_db),
):
    try:
        return locks.promote_lock(db, lock_id, order_id=data.order_id if data else None)
    except SlotEngineError as exc:
        raise _http(exc)
