"""
Slots calculation module.

Level 1: Base cells: schedule, overrides, blocks (cached in Redis Sorted Sets)
Level 2: Bookings and live reservation locks (resolved on every read)

The database-backed services live in `grid` (compilation) and `locks`
(reservation lock manager); import them from their modules.
"""

from .config import EngineConfig, get_engine_config
from .calculator import (
    GridSources,
    SlotGridEntry,
    SlotStatus,
    build_base_cells,
    compile_grid,
    resolve_cells,
)
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_business_cache

__all__ = [
    "EngineConfig",
    "get_engine_config",
    "GridSources",
    "SlotGridEntry",
    "SlotStatus",
    "build_base_cells",
    "compile_grid",
    "resolve_cells",
    "SlotsRedisStore",
    "invalidate_business_cache",
]
