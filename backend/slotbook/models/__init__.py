from .tables import (
    AvailabilityBlocks,
    Base,
    Bookings,
    ReservationLocks,
    SlotOverrides,
    WeeklyScheduleDays,
    metadata,
)

__all__ = [
    "AvailabilityBlocks",
    "Base",
    "Bookings",
    "ReservationLocks",
    "SlotOverrides",
    "WeeklyScheduleDays",
    "metadata",
]
