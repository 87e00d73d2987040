"""
Slot grid service: loads every source for a business and runs the compiler.

Base cells (schedule + overrides + blocks) may come from the Redis cache;
bookings and locks are always read fresh from the database.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ...errors import InvalidRangeError
from ...models import ReservationLocks as DBLock
from ..blocks import list_blocks, to_window
from ..ledger import booked_keys
from ..overrides import load_override_map
from ..schedule import load_schedule_map
from .calculator import (
    BaseCell,
    GridSources,
    SlotGridEntry,
    SlotStatus,
    build_base_cell,
    build_base_cells,
    compile_grid,
    resolve_cells,
)
from .config import (
    EngineConfig,
    get_engine_config,
    time_str_to_minutes,
    utcnow,
    validate_duration,
    validate_interval_and_duration,
)
from .invalidator import get_affected_dates
from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def validate_range(
    start_date: date,
    end_date: date,
    slot_interval_minutes: int,
    duration_minutes: int,
    config: EngineConfig,
) -> None:
    if end_date < start_date:
        raise InvalidRangeError(f"end_date {end_date} is before start_date {start_date}")
    span = (end_date - start_date).days + 1
    if span > config.max_range_days:
        raise InvalidRangeError(
            f"Date range spans {span} days, maximum is {config.max_range_days}"
        )
    validate_interval_and_duration(slot_interval_minutes, duration_minutes)


def live_lock_map(
    db: Session,
    business_id: int,
    start_date: date,
    end_date: date,
    now: datetime,
) -> dict[tuple[date, str], datetime]:
    """(date, "HH:MM") → expires_at for locks that are held and not yet expired."""
    rows = (
        db.query(DBLock.slot_date, DBLock.slot_time, DBLock.expires_at)
        .filter(
            DBLock.business_id == business_id,
            DBLock.slot_date >= start_date,
            DBLock.slot_date <= end_date,
            DBLock.state == "held",
            DBLock.expires_at > now,
        )
        .all()
    )
    return {(row.slot_date, row.slot_time): row.expires_at for row in rows}


def load_sources(
    db: Session,
    business_id: int,
    start_date: date,
    end_date: date,
    now: datetime,
) -> GridSources:
    """Point-in-time read of every source the compiler needs."""
    return GridSources(
        schedule=load_schedule_map(db, business_id),
        overrides=load_override_map(db, business_id),
        blocks=[to_window(b) for b in list_blocks(db, business_id, start_date, end_date)],
        booked=booked_keys(db, business_id, start_date, end_date),
        locks=live_lock_map(db, business_id, start_date, end_date, now),
    )


def get_slot_grid(
    db: Session,
    business_id: int,
    start_date: date,
    end_date: date,
    slot_interval_minutes: Optional[int] = None,
    duration_minutes: Optional[int] = None,
    redis: Optional[Redis] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> list[SlotGridEntry]:
    """
    Compile the grid for [start_date, end_date] (inclusive).

    Raises:
        InvalidRangeError: end before start, range too long, or a
            non-positive interval/duration.
    """
    config = config or get_engine_config()
    interval = (
        slot_interval_minutes if slot_interval_minutes is not None else config.slot_interval_minutes
    )
    duration = duration_minutes if duration_minutes is not None else config.duration_minutes
    now = now or utcnow()

    validate_range(start_date, end_date, interval, duration, config)
    dates = get_affected_dates(start_date, end_date)

    store = SlotsRedisStore(redis, config) if redis is not None else None
    version = None
    if store is not None:
        # must be read before load_sources
        try:
            version = store.get_version(business_id)
        except RedisError:
            logger.exception("Slot cache version read failed for business=%s", business_id)

    sources = load_sources(db, business_id, start_date, end_date, now)

    if version is None:
        return compile_grid(sources, dates, interval, duration, now)

    base = _get_base_cells(store, version, business_id, dates, interval, duration, sources)
    entries: list[SlotGridEntry] = []
    for dt in dates:
        entries.extend(resolve_cells(base[dt], sources.booked, sources.locks, now))
    return entries


def _get_base_cells(
    store: SlotsRedisStore,
    version: int,
    business_id: int,
    dates: list[date],
    interval: int,
    duration: int,
    sources: GridSources,
) -> dict[date, list[BaseCell]]:
    """Base cells per date, reading through the Redis cache."""
    try:
        cached = store.mget_cells(business_id, dates, interval, duration, version=version)
    except RedisError:
        logger.exception("Slot cache read failed for business=%s", business_id)
        cached = {}

    result: dict[date, list[BaseCell]] = {}
    to_store: dict[date, list[BaseCell]] = {}
    for dt in dates:
        cells = cached.get(dt)
        if cells is None:
            cells = build_base_cells(
                dt, sources.schedule, sources.overrides, sources.blocks, interval, duration
            )
            to_store[dt] = cells
        result[dt] = cells

    if to_store:
        try:
            store.store_multiple_days(business_id, interval, duration, to_store, version=version)
        except RedisError:
            logger.exception("Slot cache write failed for business=%s", business_id)

    return result


def evaluate_cell(
    db: Session,
    business_id: int,
    slot_date: date,
    slot_time: str,
    duration_minutes: int,
    now: datetime,
) -> Optional[SlotGridEntry]:
    """
    Fresh status of a single cell, bypassing the cache.

    Any start time is accepted, not only the steps of one grid: the cell
    just has to fit in the open hours of that date. Returns None when it
    does not, or when an override disables that time.
    """
    validate_duration(duration_minutes)
    start_minute = time_str_to_minutes(slot_time)
    sources = load_sources(db, business_id, slot_date, slot_date, now)
    cell = build_base_cell(
        slot_date,
        start_minute,
        sources.schedule,
        sources.overrides,
        sources.blocks,
        duration_minutes,
    )
    if cell is None:
        return None
    return resolve_cells([cell], sources.booked, sources.locks, now)[0]


def get_available_times(
    db: Session,
    business_id: int,
    start_date: date,
    end_date: date,
    slot_interval_minutes: int = 30,
    duration_minutes: Optional[int] = None,
    redis: Optional[Redis] = None,
    now: Optional[datetime] = None,
) -> list[dict]:
    """
    Customer-facing view of the grid.

    Every offered cell is listed; only "available" cells can be picked.
    Block ids are not exposed.
    """
    entries = get_slot_grid(
        db,
        business_id,
        start_date,
        end_date,
        slot_interval_minutes=slot_interval_minutes,
        duration_minutes=duration_minutes,
        redis=redis,
        now=now,
    )
    return [
        {
            "date": entry.date,
            "time": entry.time,
            "available": entry.status == SlotStatus.AVAILABLE,
        }
        for entry in entries
    ]


def default_end_date(start_date: date) -> date:
    """Customer view defaults to one week when no end date is given."""
    return start_date + timedelta(days=6)
