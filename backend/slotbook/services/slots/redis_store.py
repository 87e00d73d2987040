"""
Redis storage for base cells (Level 1) using Sorted Sets.

Key format: slots:base:{business_id}:v{version}:{date}:{interval}:{duration}
Value: Sorted Set where member = "HH:MM" or "HH:MM#{block_id}",
       score = minute of day (keeps members in time order).

Sentinel: "__empty__" with score=-1 marks "calculated, zero cells".

Version: slots:version:{business_id} is bumped on every invalidation, so
cells written from sources loaded before the bump are never read again.
"""

from datetime import date
from typing import Optional

from redis import Redis

from .calculator import BaseCell
from .config import EngineConfig, get_engine_config, time_str_to_minutes


EMPTY_SENTINEL = "__empty__"
BLOCK_SEPARATOR = "#"


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


def _encode_cell(cell: BaseCell) -> str:
    if cell.block_id is None:
        return cell.time
    return f"{cell.time}{BLOCK_SEPARATOR}{cell.block_id}"


def _decode_cell(dt: date, member: str) -> BaseCell:
    time_str, _, block_id = member.partition(BLOCK_SEPARATOR)
    return BaseCell(date=dt, time=time_str, block_id=int(block_id) if block_id else None)


class SlotsRedisStore:
    """Redis storage wrapper for cached base cells."""

    KEY_PREFIX = "slots:base"
    VERSION_PREFIX = "slots:version"

    def __init__(self, redis: Redis, config: EngineConfig | None = None):
        self.redis = redis
        self.config = config or get_engine_config()

    def _key(self, business_id: int, dt: date, interval: int, duration: int, version: int) -> str:
        return f"{self.KEY_PREFIX}:{business_id}:v{version}:{dt.isoformat()}:{interval}:{duration}"

    def _version_key(self, business_id: int) -> str:
        return f"{self.VERSION_PREFIX}:{business_id}"

    # ── Version ──────────────────────────────────────────────────────────

    def get_version(self, business_id: int) -> int:
        """Current cache generation of a business (0 before any invalidation)."""
        raw = self.redis.get(self._version_key(business_id))
        return int(raw) if raw is not None else 0

    def bump_version(self, business_id: int) -> int:
        return self.redis.incr(self._version_key(business_id))

    # ── Write ────────────────────────────────────────────────────────────

    def store_multiple_days(
        self,
        business_id: int,
        interval: int,
        duration: int,
        days_cells: dict[date, list[BaseCell]],
        version: int = 0,
    ) -> None:
        """
        Batch store base cells for several days via pipeline.

        An empty list stores the sentinel so EXISTS still reports a hit.
        """
        if not days_cells:
            return

        pipe = self.redis.pipeline()
        for dt, cells in days_cells.items():
            key = self._key(business_id, dt, interval, duration, version)
            pipe.delete(key)

            if cells:
                mapping = {
                    _encode_cell(cell): time_str_to_minutes(cell.time)
                    for cell in cells
                }
                pipe.zadd(key, mapping)
            else:
                pipe.zadd(key, {EMPTY_SENTINEL: -1})
            pipe.expire(key, self.config.cache_ttl_seconds)

        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_day_cells(
        self,
        business_id: int,
        dt: date,
        interval: int,
        duration: int,
        version: int = 0,
    ) -> Optional[list[BaseCell]]:
        """
        Cached base cells for one day.

        Returns:
            Cells in time order, or None on cache miss.
        """
        key = self._key(business_id, dt, interval, duration, version)
        if not self.redis.exists(key):
            return None

        members = self.redis.zrangebyscore(key, 0, "+inf")
        return [
            _decode_cell(dt, m)
            for m in (_decode(raw) for raw in members)
            if m != EMPTY_SENTINEL
        ]

    def mget_cells(
        self,
        business_id: int,
        dates: list[date],
        interval: int,
        duration: int,
        version: int = 0,
    ) -> dict[date, Optional[list[BaseCell]]]:
        """
        Batch read for several dates.

        Returns:
            Dict mapping date → cells (or None on cache miss).
        """
        if not dates:
            return {}

        keys = [self._key(business_id, dt, interval, duration, version) for dt in dates]

        # First pass: check existence
        pipe = self.redis.pipeline()
        for key in keys:
            pipe.exists(key)
        exists_results = pipe.execute()

        # Second pass: read members for existing keys
        pipe = self.redis.pipeline()
        for key, exists in zip(keys, exists_results):
            if exists:
                pipe.zrangebyscore(key, 0, "+inf")
        member_results = pipe.execute()

        result: dict[date, Optional[list[BaseCell]]] = {}
        idx = 0
        for dt, exists in zip(dates, exists_results):
            if exists:
                result[dt] = [
                    _decode_cell(dt, m)
                    for m in (_decode(raw) for raw in member_results[idx])
                    if m != EMPTY_SENTINEL
                ]
                idx += 1
            else:
                result[dt] = None

        return result

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_business_cells(
        self,
        business_id: int,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached cells for every version and interval/duration variant.

        Args:
            business_id: Business ID
            dates: Specific dates, or None to delete all for the business.

        Returns:
            Number of deleted keys.
        """
        if dates:
            patterns = [f"{self.KEY_PREFIX}:{business_id}:v*:{dt.isoformat()}:*" for dt in dates]
        else:
            patterns = [f"{self.KEY_PREFIX}:{business_id}:*"]

        keys = []
        for pattern in patterns:
            keys.extend(self.redis.scan_iter(match=pattern))

        if not keys:
            return 0

        return self.redis.delete(*keys)
