# backend/slotbook/routers/slots.py
"""
Slots cache admin endpoints.

POST /slots/invalidate - drop cached base cells for a business
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from redis import Redis

from ..redis_client import get_redis
from ..services.slots import invalidate_business_cache


router = APIRouter(prefix="/slots", tags=["slots"])


@router.post("/invalidate")
def invalidate_slots_cache(
    business_id: int,
    dates: list[date] | None = Query(None),
    redis: Optional[Redis] = Depends(get_redis),
):
    """Manually invalidate slots cache for a business (admin endpoint)."""
    deleted = invalidate_business_cache(redis, business_id, dates)

    return {
        "business_id": business_id,
        "deleted_keys": deleted,
        "dates": [d.isoformat() for d in dates] if dates else "all",
    }
