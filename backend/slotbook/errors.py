"""
Domain errors raised by the availability and reservation services.

Routers translate them into HTTP responses; services never return error
flags.
"""

from typing import Optional


class SlotEngineError(Exception):
    """Base class for all availability/reservation errors."""


class SlotUnavailableError(SlotEngineError):
    """The requested cell is booked, blocked, already locked, or not offered."""

    def __init__(self, message: str, business_id: Optional[int] = None):
        super().__init__(message)
        self.business_id = business_id


class LockExpiredError(SlotEngineError):
    """The hold is no longer live: TTL elapsed, released, or unknown token."""

    def __init__(self, message: str, lock_id: Optional[str] = None):
        super().__init__(message)
        self.lock_id = lock_id


class InvalidRangeError(SlotEngineError):
    """Malformed date/time range or non-positive duration/interval."""


class InvalidScheduleError(SlotEngineError):
    """Weekly schedule payload is not a complete, consistent week."""


class NotFoundError(SlotEngineError):
    pass


class CheckoutSlotLostError(SlotUnavailableError):
    """
    One business's slot could not be reserved during a multi-business checkout.

    `lost` is the selection that failed; `remaining` are the other
    selections, left untouched so only the failed one needs re-picking.
    """

    def __init__(self, message: str, lost, remaining: list):
        super().__init__(message, business_id=lost.business_id)
        self.lost = lost
        self.remaining = remaining


HTTP_STATUS = {
    CheckoutSlotLostError: 409,
    SlotUnavailableError: 409,
    LockExpiredError: 410,
    InvalidRangeError: 400,
    InvalidScheduleError: 400,
    NotFoundError: 404,
}


def http_status_for(exc: SlotEngineError) -> int:
    """HTTP status used by routers for a domain error."""
    for cls in type(exc).__mro__:
        if cls in HTTP_STATUS:
            return HTTP_STATUS[cls]
    return 400
