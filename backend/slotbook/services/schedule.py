# backend/slotbook/services/schedule.py
"""
Weekly schedule store.

Every business has exactly seven schedule days (0 = Sunday ... 6 = Saturday).
Days without a stored row are reported closed with placeholder hours.
"""

import logging
from typing import Optional

from redis import Redis
from sqlalchemy.orm import Session

from ..errors import InvalidScheduleError
from ..models import WeeklyScheduleDays as DBScheduleDay
from .slots.calculator import ScheduleDay
from .slots.config import normalize_time_str, time_str_to_minutes
from .slots.invalidator import invalidate_business_cache

logger = logging.getLogger(__name__)

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"
WEEKDAYS = range(7)


def _closed_day(weekday: int) -> ScheduleDay:
    return ScheduleDay(
        weekday=weekday,
        is_available=False,
        start_time=DEFAULT_START_TIME,
        end_time=DEFAULT_END_TIME,
    )


def load_schedule_map(db: Session, business_id: int) -> dict[int, ScheduleDay]:
    """Stored schedule rows keyed by weekday (missing days absent)."""
    rows = (
        db.query(DBScheduleDay)
        .filter(DBScheduleDay.business_id == business_id)
        .all()
    )
    return {
        row.weekday: ScheduleDay(
            weekday=row.weekday,
            is_available=bool(row.is_available),
            start_time=row.start_time,
            end_time=row.end_time,
        )
        for row in rows
    }


def get_weekly_schedule(db: Session, business_id: int) -> list[ScheduleDay]:
    """Always seven days, ordered Sunday → Saturday."""
    stored = load_schedule_map(db, business_id)
    return [stored.get(weekday) or _closed_day(weekday) for weekday in WEEKDAYS]


def _validate_week(days: list[ScheduleDay]) -> list[ScheduleDay]:
    weekdays = sorted(day.weekday for day in days)
    if weekdays != list(WEEKDAYS):
        raise InvalidScheduleError(
            "Weekly schedule must contain exactly one entry for each weekday 0-6"
        )

    normalized = []
    for day in days:
        start = normalize_time_str(day.start_time)
        end = normalize_time_str(day.end_time)
        if day.is_available and time_str_to_minutes(start) >= time_str_to_minutes(end):
            raise InvalidScheduleError(
                f"Weekday {day.weekday}: start time {start} must be before end time {end}"
            )
        normalized.append(
            ScheduleDay(
                weekday=day.weekday,
                is_available=day.is_available,
                start_time=start,
                end_time=end,
            )
        )
    return normalized


def put_weekly_schedule(
    db: Session,
    business_id: int,
    days: list[ScheduleDay],
    redis: Optional[Redis] = None,
) -> list[ScheduleDay]:
    """Replace the full week for a business."""
    days = _validate_week(days)

    existing = {
        row.weekday: row
        for row in db.query(DBScheduleDay).filter(DBScheduleDay.business_id == business_id)
    }

    for day in days:
        row = existing.get(day.weekday)
        if row is None:
            row = DBScheduleDay(business_id=business_id, weekday=day.weekday)
            db.add(row)
        row.is_available = day.is_available
        row.start_time = day.start_time
        row.end_time = day.end_time

    db.commit()

    open_days = [day.weekday for day in days if day.is_available]
    logger.info(f"Weekly schedule saved for business {business_id}, open weekdays={open_days}")

    invalidate_business_cache(redis, business_id)
    return sorted(days, key=lambda d: d.weekday)
