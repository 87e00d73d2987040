"""
Slot grid compiler.

Two pure stages, no database or Redis access:

Level 1 (base cells) depends only on data owned by the business:
  ✓ weekly schedule (open hours per weekday)
  ✓ slot overrides (per weekday/time opt-outs, open by default)
  ✓ availability blocks (all-day or time-ranged closures)

Level 2 (resolution) is evaluated on every read:
  ✓ bookings   → "booked"  (wins over everything)
  ✓ live locks → "locked"  (only over otherwise available cells)

Precedence: booked > blocked > locked > available.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Mapping, Optional

from .config import (
    MINUTES_PER_DAY,
    minutes_to_time_str,
    time_str_to_minutes,
    weekday_of,
)


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    LOCKED = "locked"


@dataclass(frozen=True)
class ScheduleDay:
    weekday: int
    is_available: bool
    start_time: str
    end_time: str


@dataclass(frozen=True)
class BlockWindow:
    id: int
    block_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_all_day: bool = False

    def bounds(self) -> tuple[int, int]:
        """Blocked minutes [start, end); all-day (or open-ended) covers the whole day."""
        if self.is_all_day:
            return 0, MINUTES_PER_DAY
        start = time_str_to_minutes(self.start_time) if self.start_time else 0
        end = time_str_to_minutes(self.end_time) if self.end_time else MINUTES_PER_DAY
        return start, end


@dataclass(frozen=True)
class BaseCell:
    date: date
    time: str
    block_id: Optional[int] = None


@dataclass(frozen=True)
class SlotGridEntry:
    date: date
    time: str
    status: SlotStatus
    block_id: Optional[int] = None


@dataclass
class GridSources:
    """
    Everything the compiler reads, passed explicitly.

    overrides: (weekday, "HH:MM") → enabled
    booked:    {(date, "HH:MM")}
    locks:     (date, "HH:MM") → expires_at of the lock row in state "held"
    """
    schedule: Mapping[int, ScheduleDay]
    overrides: Mapping[tuple[int, str], bool]
    blocks: list[BlockWindow]
    booked: set[tuple[date, str]]
    locks: Mapping[tuple[date, str], datetime]


# ── Level 1 ──────────────────────────────────────────────────────────────


def generate_candidates(
    day: Optional[ScheduleDay],
    slot_interval_minutes: int,
    duration_minutes: int,
) -> list[int]:
    """
    Candidate start minutes for one schedule day.

    Walks [start, end) by slot_interval_minutes and drops any candidate
    whose [t, t + duration) runs past the closing time.
    """
    if day is None or not day.is_available:
        return []

    start_min = time_str_to_minutes(day.start_time)
    end_min = time_str_to_minutes(day.end_time)

    candidates = []
    t = start_min
    while t < end_min:
        if t + duration_minutes <= end_min:
            candidates.append(t)
        t += slot_interval_minutes
    return candidates


def build_base_cells(
    target_date: date,
    schedule: Mapping[int, ScheduleDay],
    overrides: Mapping[tuple[int, str], bool],
    blocks: Iterable[BlockWindow],
    slot_interval_minutes: int,
    duration_minutes: int,
) -> list[BaseCell]:
    """Apply schedule, overrides and blocks for one date."""
    weekday = weekday_of(target_date)
    candidates = generate_candidates(
        schedule.get(weekday), slot_interval_minutes, duration_minutes
    )
    if not candidates:
        return []

    day_blocks = _blocks_on(target_date, blocks)

    cells = []
    for t in candidates:
        time_str = minutes_to_time_str(t)
        if not overrides.get((weekday, time_str), True):
            continue
        block_id = _covering_block_id(day_blocks, t, duration_minutes)
        cells.append(BaseCell(date=target_date, time=time_str, block_id=block_id))

    return cells


def build_base_cell(
    target_date: date,
    start_minute: int,
    schedule: Mapping[int, ScheduleDay],
    overrides: Mapping[tuple[int, str], bool],
    blocks: Iterable[BlockWindow],
    duration_minutes: int,
) -> Optional[BaseCell]:
    """
    Base cell for one start time, whatever grid step it was picked from.

    Returns None when [start, start + duration) does not fit in the open
    hours of that date, or an override disables that exact time.
    """
    weekday = weekday_of(target_date)
    day = schedule.get(weekday)
    if day is None or not day.is_available:
        return None

    open_min = time_str_to_minutes(day.start_time)
    close_min = time_str_to_minutes(day.end_time)
    if start_minute < open_min or start_minute + duration_minutes > close_min:
        return None

    time_str = minutes_to_time_str(start_minute)
    if not overrides.get((weekday, time_str), True):
        return None

    block_id = _covering_block_id(_blocks_on(target_date, blocks), start_minute, duration_minutes)
    return BaseCell(date=target_date, time=time_str, block_id=block_id)


def _blocks_on(target_date: date, blocks: Iterable[BlockWindow]) -> list[BlockWindow]:
    # All-day blocks first so they own the block_id of every cell they cover
    return sorted(
        (b for b in blocks if b.block_date == target_date),
        key=lambda b: (not b.is_all_day, b.bounds()[0], b.id),
    )


def _covering_block_id(day_blocks: list[BlockWindow], start: int, duration: int) -> Optional[int]:
    """Id of the first block overlapping [start, start + duration), if any."""
    for block in day_blocks:
        block_start, block_end = block.bounds()
        if start < block_end and block_start < start + duration:
            return block.id
    return None


# ── Level 2 ──────────────────────────────────────────────────────────────


def resolve_cells(
    base_cells: Iterable[BaseCell],
    booked: set[tuple[date, str]],
    locks: Mapping[tuple[date, str], datetime],
    now: datetime,
) -> list[SlotGridEntry]:
    """Layer bookings and live locks over base cells."""
    entries = []
    for cell in base_cells:
        key = (cell.date, cell.time)
        expires_at = locks.get(key)

        if key in booked:
            entries.append(SlotGridEntry(cell.date, cell.time, SlotStatus.BOOKED))
        elif cell.block_id is not None:
            entries.append(SlotGridEntry(cell.date, cell.time, SlotStatus.BLOCKED, cell.block_id))
        elif expires_at is not None and expires_at > now:
            entries.append(SlotGridEntry(cell.date, cell.time, SlotStatus.LOCKED))
        else:
            entries.append(SlotGridEntry(cell.date, cell.time, SlotStatus.AVAILABLE))
    return entries


def compile_grid(
    sources: GridSources,
    dates: Iterable[date],
    slot_interval_minutes: int,
    duration_minutes: int,
    now: datetime,
) -> list[SlotGridEntry]:
    """
    Compile the slot grid for the given dates.

    Returns entries ordered by date, then time. An empty date sequence or
    a business without schedule yields an empty list.
    """
    entries: list[SlotGridEntry] = []
    for target_date in sorted(dates):
        base = build_base_cells(
            target_date,
            sources.schedule,
            sources.overrides,
            sources.blocks,
            slot_interval_minutes,
            duration_minutes,
        )
        entries.extend(resolve_cells(base, sources.booked, sources.locks, now))
    return entries
