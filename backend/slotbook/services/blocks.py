# backend/slotbook/services/blocks.py
"""
Availability block store.

Blocks are date-specific closures independent of the weekly pattern.
They are created and deleted, never edited in place.
"""

import logging
from datetime import date
from typing import Optional

from redis import Redis
from sqlalchemy.orm import Session

from ..errors import InvalidRangeError, NotFoundError
from ..models import AvailabilityBlocks as DBBlock
from .slots.calculator import BlockWindow
from .slots.config import minutes_to_time_str, normalize_time_str, time_str_to_minutes
from .slots.invalidator import invalidate_business_cache

logger = logging.getLogger(__name__)

CALENDAR_BLOCK_REASON = "Blocked from calendar"


def to_window(block: DBBlock) -> BlockWindow:
    return BlockWindow(
        id=block.id,
        block_date=block.block_date,
        start_time=block.start_time,
        end_time=block.end_time,
        is_all_day=bool(block.is_all_day),
    )


def list_blocks(
    db: Session,
    business_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[DBBlock]:
    """Blocks of a business ordered by date, optionally limited to a date range."""
    query = db.query(DBBlock).filter(DBBlock.business_id == business_id)
    if start_date is not None:
        query = query.filter(DBBlock.block_date >= start_date)
    if end_date is not None:
        query = query.filter(DBBlock.block_date <= end_date)
    return query.order_by(DBBlock.block_date, DBBlock.start_time, DBBlock.id).all()


def create_block(
    db: Session,
    business_id: int,
    block_date: date,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    reason: Optional[str] = None,
    is_all_day: bool = False,
    redis: Optional[Redis] = None,
) -> DBBlock:
    """
    Create an all-day or time-ranged block.

    Times are dropped for all-day blocks; a ranged block needs both times
    with start before end.
    """
    if is_all_day:
        start_time = end_time = None
    else:
        if not start_time or not end_time:
            raise InvalidRangeError("start_time and end_time are required unless the block is all-day")
        start_time = normalize_time_str(start_time)
        end_time = normalize_time_str(end_time)
        if time_str_to_minutes(start_time) >= time_str_to_minutes(end_time):
            raise InvalidRangeError(f"Block start {start_time} must be before end {end_time}")

    block = DBBlock(
        business_id=business_id,
        block_date=block_date,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
        is_all_day=is_all_day,
    )
    db.add(block)
    db.commit()
    db.refresh(block)

    span = "all day" if is_all_day else f"{start_time}-{end_time}"
    logger.info(f"Block {block.id} created for business {business_id} on {block_date} ({span})")

    invalidate_business_cache(redis, business_id, [block_date])
    return block


def block_slot(
    db: Session,
    business_id: int,
    slot_date: date,
    slot_time: str,
    duration_minutes: int = 60,
    redis: Optional[Redis] = None,
) -> DBBlock:
    """Block a single grid cell, as done from the business calendar view."""
    start_min = time_str_to_minutes(slot_time)
    end_min = start_min + duration_minutes
    if duration_minutes <= 0 or end_min > 24 * 60:
        raise InvalidRangeError(f"Cannot block {duration_minutes} minutes from {slot_time}")

    return create_block(
        db,
        business_id,
        slot_date,
        start_time=minutes_to_time_str(start_min),
        end_time=minutes_to_time_str(end_min),
        reason=CALENDAR_BLOCK_REASON,
        is_all_day=False,
        redis=redis,
    )


def delete_block(
    db: Session,
    block_id: int,
    business_id: Optional[int] = None,
    redis: Optional[Redis] = None,
) -> None:
    """
    Delete a block.

    When business_id is given, a block owned by another business is
    reported as not found.
    """
    block = db.get(DBBlock, block_id)
    if not block or (business_id is not None and block.business_id != business_id):
        raise NotFoundError(f"Block {block_id} not found")

    owner_id, block_date = block.business_id, block.block_date
    db.delete(block)
    db.commit()

    logger.info(f"Block {block_id} deleted for business {owner_id} on {block_date}")
    invalidate_business_cache(redis, owner_id, [block_date])
