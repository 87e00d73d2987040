# backend/slotbook/services/checkout.py
"""
Multi-business checkout orchestration.

A cart may contain services from several businesses. Each business gets
its own slot lock and its own sub-order; payment for a sub-order promotes
that business's lock only.

Locks are taken sequentially. If any business's slot is lost, every lock
taken earlier in the same attempt is released and the attempt fails,
naming the business whose slot was lost.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import (
    CheckoutSlotLostError,
    InvalidRangeError,
    SlotEngineError,
    SlotUnavailableError,
)
from .ledger import BookingRef
from .slots.locks import LockHandle, acquire_lock, promote_lock, release_lock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotSelection:
    business_id: int
    date: date
    time: str
    duration_minutes: Optional[int] = None
    business_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.business_name or f"business {self.business_id}"


@dataclass(frozen=True)
class SubOrderHold:
    business_id: int
    selection: SlotSelection
    lock: LockHandle


@dataclass
class CheckoutHold:
    sub_orders: list[SubOrderHold] = field(default_factory=list)

    @property
    def lock_ids(self) -> list[str]:
        return [sub.lock.lock_id for sub in self.sub_orders]


def reserve_checkout(
    db: Session,
    selections: list[SlotSelection],
    now: Optional[datetime] = None,
) -> CheckoutHold:
    """
    Lock one slot per business before payment.

    Raises:
        InvalidRangeError: empty cart or two selections for one business.
        CheckoutSlotLostError: a business's slot could not be locked; locks
            taken earlier in this attempt have been released.
    """
    if not selections:
        raise InvalidRangeError("Checkout needs at least one slot selection")

    business_ids = [s.business_id for s in selections]
    if len(set(business_ids)) != len(business_ids):
        raise InvalidRangeError("Only one slot per business can be reserved in a checkout")

    hold = CheckoutHold()
    for selection in selections:
        try:
            lock = acquire_lock(
                db,
                selection.business_id,
                selection.date,
                selection.time,
                duration_minutes=selection.duration_minutes,
                now=now,
            )
        except SlotEngineError as exc:
            for sub in hold.sub_orders:
                release_lock(db, sub.lock.lock_id, now=now)
            if not isinstance(exc, SlotUnavailableError):
                raise
            logger.warning(
                f"Checkout aborted: slot lost for business {selection.business_id}, "
                f"released {len(hold.sub_orders)} earlier lock(s)"
            )
            raise CheckoutSlotLostError(
                f"The selected time slot is no longer available for "
                f"{selection.display_name}. Please choose another time.",
                lost=selection,
                remaining=[s for s in selections if s is not selection],
            )

        hold.sub_orders.append(
            SubOrderHold(business_id=selection.business_id, selection=selection, lock=lock)
        )

    logger.info(f"Checkout reserved {len(hold.sub_orders)} slot(s): {hold.lock_ids}")
    return hold


def confirm_sub_order(
    db: Session,
    lock_id: str,
    order_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingRef:
    """Payment for one business's sub-order succeeded."""
    return promote_lock(db, lock_id, order_id=order_id, now=now)


def abandon_checkout(
    db: Session,
    lock_ids: list[str],
    now: Optional[datetime] = None,
) -> None:
    """Release every lock of an abandoned or cancelled checkout."""
    for lock_id in lock_ids:
        release_lock(db, lock_id, now=now)
