# backend/slotbook/redis_client.py
"""
Shared Redis client.

Redis is optional: without REDIS_URL the base-cell cache is bypassed and
lifecycle events are not published.
"""

from typing import Optional

from redis import Redis

from .config import settings

redis_client: Optional[Redis] = (
    Redis.from_url(settings.redis_url, socket_timeout=2.0)
    if settings.redis_url
    else None
)


def get_redis() -> Optional[Redis]:
    """FastAPI dependency returning the shared client (or None)."""
    return redis_client
