"""
Engine configuration and time helpers for slot calculation.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache

from ...config import settings
from ...errors import InvalidRangeError

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the availability/reservation engine.

    Attributes:
        slot_interval_minutes: Default step between candidate start times
        duration_minutes: Default slot length when the caller gives none
        lock_ttl_minutes: Lifetime of an unpromoted reservation lock
        max_range_days: Longest date range a single grid request may span
        cache_ttl_seconds: Redis TTL for cached base cells
    """
    slot_interval_minutes: int = 60
    duration_minutes: int = 60
    lock_ttl_minutes: int = 15
    max_range_days: int = 92
    cache_ttl_seconds: int = 86400

    def __post_init__(self):
        """Validate configuration."""
        if self.lock_ttl_minutes <= 0:
            raise ValueError(f"lock_ttl_minutes must be positive, got {self.lock_ttl_minutes}")
        validate_interval_and_duration(self.slot_interval_minutes, self.duration_minutes)


@lru_cache
def get_engine_config() -> EngineConfig:
    """Engine configuration built from application settings (singleton)."""
    return EngineConfig(
        slot_interval_minutes=settings.default_slot_interval_minutes,
        duration_minutes=settings.default_duration_minutes,
        lock_ttl_minutes=settings.lock_ttl_minutes,
        max_range_days=settings.max_range_days,
        cache_ttl_seconds=settings.grid_cache_ttl_seconds,
    )


# ── Time helpers ─────────────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """
    Convert "HH:MM" (seconds are tolerated and ignored) to minute-of-day.

    "24:00" is accepted as the end-of-day boundary.
    """
    try:
        parts = value.strip().split(":")
        hour, minute = int(parts[0]), int(parts[1])
    except (AttributeError, IndexError, ValueError):
        raise InvalidRangeError(f"Time must be in HH:MM format, got {value!r}")

    if not (0 <= minute < 60) or not (0 <= hour <= 24) or (hour == 24 and minute):
        raise InvalidRangeError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minute-of-day to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str) -> str:
    """Canonical "HH:MM" form ("9:00:00" -> "09:00")."""
    return minutes_to_time_str(time_str_to_minutes(value))


def weekday_of(dt: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def validate_interval_and_duration(slot_interval_minutes: int, duration_minutes: int) -> None:
    if slot_interval_minutes <= 0 or slot_interval_minutes > MINUTES_PER_DAY:
        raise InvalidRangeError(
            f"slot_interval_minutes must be between 1 and {MINUTES_PER_DAY}, got {slot_interval_minutes}"
        )
    validate_duration(duration_minutes)


def validate_duration(duration_minutes: int) -> None:
    if duration_minutes <= 0 or duration_minutes > MINUTES_PER_DAY:
        raise InvalidRangeError(
            f"duration_minutes must be between 1 and {MINUTES_PER_DAY}, got {duration_minutes}"
        )


def utcnow() -> datetime:
    """Naive UTC timestamp, the form lock expiry is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
