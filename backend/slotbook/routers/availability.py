# backend/slotbook/routers/availability.py
"""
Business availability endpoints.

Schedule, slot overrides and blocks are written by the owning business;
the slot grid is the business calendar view; the bare /availability
route is the customer date/time picker.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import SlotEngineError, http_status_for
from ..redis_client import get_redis
from ..schemas.availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockRead,
    CalendarSlotBlockCreate,
    ScheduleDayRead,
    SlotOverridesRead,
    SlotOverridesWrite,
    WeeklyScheduleRead,
    WeeklyScheduleWrite,
)
from ..schemas.slots import (
    AvailableTimeRead,
    AvailableTimesResponse,
    SlotGridEntryRead,
    SlotGridResponse,
)
from ..services import blocks as blocks_service
from ..services import overrides as overrides_service
from ..services import schedule as schedule_service
from ..services.slots.calculator import ScheduleDay
from ..services.slots.config import get_engine_config
from ..services.slots.grid import default_end_date, get_available_times, get_slot_grid

router = APIRouter(prefix="/businesses/{business_id}/availability", tags=["availability"])


def _http(exc: SlotEngineError) -> HTTPException:
    return HTTPException(status_code=http_status_for(exc), detail=str(exc))


# ── Weekly schedule ──────────────────────────────────────────────────────


@router.get("/schedule", response_model=WeeklyScheduleRead)
def get_schedule(business_id: int, db: Session = Depends(get_db)):
    days = schedule_service.get_weekly_schedule(db, business_id)
    return WeeklyScheduleRead(
        business_id=business_id,
        days=[ScheduleDayRead.model_validate(day, from_attributes=True) for day in days],
    )


@router.put("/schedule", response_model=WeeklyScheduleRead)
def put_schedule(
    business_id: int,
    data: WeeklyScheduleWrite,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    days = [ScheduleDay(**day.model_dump()) for day in data.days]
    try:
        saved = schedule_service.put_weekly_schedule(db, business_id, days, redis=redis)
    except SlotEngineError as exc:
        raise _http(exc)
    return WeeklyScheduleRead(
        business_id=business_id,
        days=[ScheduleDayRead.model_validate(day, from_attributes=True) for day in saved],
    )


# ── Slot overrides ───────────────────────────────────────────────────────


@router.get("/slots", response_model=SlotOverridesRead)
def get_slot_overrides(business_id: int, db: Session = Depends(get_db)):
    return SlotOverridesRead(
        business_id=business_id,
        slots_by_day=overrides_service.get_overrides(db, business_id),
    )


@router.put("/slots", response_model=SlotOverridesRead)
def put_slot_overrides(
    business_id: int,
    data: SlotOverridesWrite,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    payload = {
        weekday: [slot.model_dump() for slot in slots]
        for weekday, slots in data.slots_by_day.items()
    }
    try:
        saved = overrides_service.put_overrides(db, business_id, payload, redis=redis)
    except SlotEngineError as exc:
        raise _http(exc)
    return SlotOverridesRead(business_id=business_id, slots_by_day=saved)


# ── Blocks ───────────────────────────────────────────────────────────────


@router.get("/blocks", response_model=list[AvailabilityBlockRead])
def list_blocks(
    business_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return blocks_service.list_blocks(db, business_id, start_date, end_date)


@router.post(
    "/blocks", response_model=AvailabilityBlockRead, status_code=status.HTTP_201_CREATED
)
def create_block(
    business_id: int,
    data: AvailabilityBlockCreate,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    try:
        return blocks_service.create_block(db, business_id, redis=redis, **data.model_dump())
    except SlotEngineError as exc:
        raise _http(exc)


@router.post(
    "/blocks/slot", response_model=AvailabilityBlockRead, status_code=status.HTTP_201_CREATED
)
def block_calendar_slot(
    business_id: int,
    data: CalendarSlotBlockCreate,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    try:
        return blocks_service.block_slot(
            db, business_id, data.date, data.time, data.duration_minutes, redis=redis
        )
    except SlotEngineError as exc:
        raise _http(exc)


@router.patch("/blocks/{block_id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_block(
    business_id: int,
    block_id: int,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    try:
        blocks_service.delete_block(db, block_id, business_id=business_id, redis=redis)
    except SlotEngineError as exc:
        raise _http(exc)


# ── Grid ─────────────────────────────────────────────────────────────────


@router.get("/slot-grid", response_model=SlotGridResponse)
def get_business_slot_grid(
    business_id: int,
    start_date: date,
    end_date: date,
    slot_interval_minutes: Optional[int] = None,
    duration_minutes: Optional[int] = None,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    """Business calendar: every offered cell with its status."""
    config = get_engine_config()
    interval = (
        slot_interval_minutes if slot_interval_minutes is not None else config.slot_interval_minutes
    )
    duration = duration_minutes if duration_minutes is not None else config.duration_minutes
    try:
        entries = get_slot_grid(
            db, business_id, start_date, end_date, interval, duration, redis=redis
        )
    except SlotEngineError as exc:
        raise _http(exc)

    return SlotGridResponse(
        business_id=business_id,
        start_date=start_date,
        end_date=end_date,
        slot_interval_minutes=interval,
        duration_minutes=duration,
        slots=[
            SlotGridEntryRead(
                date=e.date, time=e.time, status=e.status.value, block_id=e.block_id
            )
            for e in entries
        ],
    )


@router.get("", response_model=AvailableTimesResponse)
def get_customer_availability(
    business_id: int,
    start_date: date,
    end_date: Optional[date] = None,
    duration_minutes: Optional[int] = None,
    slot_interval_minutes: int = Query(30, gt=0),
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    """Customer date/time picker: offered cells flagged available or not."""
    end_date = end_date or default_end_date(start_date)
    duration = (
        duration_minutes if duration_minutes is not None else get_engine_config().duration_minutes
    )
    try:
        rows = get_available_times(
            db,
            business_id,
            start_date,
            end_date,
            slot_interval_minutes=slot_interval_minutes,
            duration_minutes=duration,
            redis=redis,
        )
    except SlotEngineError as exc:
        raise _http(exc)

    return AvailableTimesResponse(
        business_id=business_id,
        start_date=start_date,
        end_date=end_date,
        duration_minutes=duration,
        slots=[AvailableTimeRead(**row) for row in rows],
    )
