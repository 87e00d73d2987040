# backend/slotbook/services/overrides.py
"""
Slot override store.

An override switches one generated time of one weekday on or off without
touching the weekly hours. No record means the time is enabled.
"""

import logging
from typing import Optional

from redis import Redis
from sqlalchemy.orm import Session

from ..errors import InvalidRangeError
from ..models import SlotOverrides as DBSlotOverride
from .slots.config import normalize_time_str
from .slots.invalidator import invalidate_business_cache

logger = logging.getLogger(__name__)


def load_override_map(db: Session, business_id: int) -> dict[tuple[int, str], bool]:
    """(weekday, "HH:MM") → enabled, for the compiler."""
    rows = (
        db.query(DBSlotOverride)
        .filter(DBSlotOverride.business_id == business_id)
        .all()
    )
    return {(row.weekday, row.slot_time): bool(row.enabled) for row in rows}


def get_overrides(db: Session, business_id: int) -> dict[int, list[dict]]:
    """weekday → [{"time": "HH:MM", "enabled": bool}] sorted by time."""
    result: dict[int, list[dict]] = {}
    rows = (
        db.query(DBSlotOverride)
        .filter(DBSlotOverride.business_id == business_id)
        .order_by(DBSlotOverride.weekday, DBSlotOverride.slot_time)
        .all()
    )
    for row in rows:
        result.setdefault(row.weekday, []).append(
            {"time": row.slot_time, "enabled": bool(row.enabled)}
        )
    return result


def put_overrides(
    db: Session,
    business_id: int,
    slots_by_day: dict[int, list[dict]],
    redis: Optional[Redis] = None,
) -> dict[int, list[dict]]:
    """
    Replace every override of the business with the given map.

    A time repeated within one weekday keeps its last value.
    """
    rows: dict[tuple[int, str], bool] = {}
    for weekday, slots in slots_by_day.items():
        weekday = int(weekday)
        if weekday not in range(7):
            raise InvalidRangeError(f"Weekday must be 0-6, got {weekday}")
        for slot in slots:
            rows[(weekday, normalize_time_str(slot["time"]))] = bool(slot["enabled"])

    db.query(DBSlotOverride).filter(DBSlotOverride.business_id == business_id).delete(
        synchronize_session=False
    )
    for (weekday, slot_time), enabled in rows.items():
        db.add(
            DBSlotOverride(
                business_id=business_id,
                weekday=weekday,
                slot_time=slot_time,
                enabled=enabled,
            )
        )
    db.commit()

    disabled = sum(1 for enabled in rows.values() if not enabled)
    logger.info(
        f"Slot overrides saved for business {business_id}: {len(rows)} record(s), {disabled} disabled"
    )

    invalidate_business_cache(redis, business_id)

    return get_overrides(db, business_id)
