"""
Cache invalidation for base cells.

Triggers:
✓ Weekly schedule saved       → invalidate all dates of the business
✓ Slot overrides saved        → invalidate all dates of the business
✓ Availability block created/deleted → invalidate the block's date

Does NOT trigger:
✗ Lock acquired/released/promoted (Level 2 reads locks on every request)
✗ Booking created (Level 2)
"""

import logging
from datetime import date
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def invalidate_business_cache(
    redis: Optional[Redis],
    business_id: int,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached base cells for a business.

    The cache version is bumped first, which retires every cached day of the
    business; `dates` only narrows which keys are deleted right away.

    Args:
        redis: Redis client, or None when caching is disabled
        business_id: Business ID
        dates: Specific dates to invalidate, or None for all cached dates

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0

    store = SlotsRedisStore(redis)
    try:
        store.bump_version(business_id)
        deleted = store.delete_business_cells(business_id, dates)
    except RedisError:
        logger.exception("Failed to invalidate slot cache for business=%s", business_id)
        return 0

    logger.info(f"Invalidated {deleted} cached day(s) for business {business_id}")
    return deleted


def get_affected_dates(
    date_start: date,
    date_end: date,
) -> list[date]:
    """
    Get list of dates in range [date_start, date_end].

    Args:
        date_start: Start date (inclusive)
        date_end: End date (inclusive)

    Returns:
        List of dates (empty when date_end < date_start)
    """
    from datetime import timedelta

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates
