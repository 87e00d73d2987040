# backend/slotbook/routers/internal.py
"""
Internal API endpoints for trusted collaborators.

Called directly by the order/payment service, never proxied to the public:
- payment succeeded   → promote the sub-order's reservation lock
- order cancelled     → release its reservation locks
- housekeeping        → purge dead lock rows

Access: localhost only.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import SlotEngineError, http_status_for
from ..schemas.checkout import OrderCancelled, PaymentSucceeded
from ..schemas.locks import BookingRead
from ..services.slots import locks

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("127.0.0.1", "localhost", "::1", None)


def require_local_caller(request: Request) -> None:
    """Only allow requests from localhost."""
    client_host = request.client.host if request.client else None
    if client_host not in LOCAL_HOSTS:
        logger.warning(f"Internal endpoint called from non-localhost: {client_host}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal endpoints are only accessible from localhost"
        )


router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_local_caller)],
)


@router.post("/payments/succeeded", response_model=BookingRead)
def payment_succeeded(data: PaymentSucceeded, db: Session = Depends(get_db)):
    """
    Promote the lock of a paid sub-order.

    410 means payment went through after the hold expired: the order
    service must re-validate the slot (rebook or refund).
    """
    try:
        return locks.promote_lock(db, data.lock_id, order_id=data.order_id)
    except SlotEngineError as exc:
        logger.warning(
            f"Paid order {data.order_id} needs slot re-validation: {exc}"
        )
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc))


@router.post("/orders/cancelled", status_code=status.HTTP_204_NO_CONTENT)
def order_cancelled(data: OrderCancelled, db: Session = Depends(get_db)):
    for lock_id in data.lock_ids:
        locks.release_lock(db, lock_id)
    logger.info(f"Order {data.order_id} cancelled, {len(data.lock_ids)} lock(s) released")


@router.post("/locks/purge")
def purge_locks(db: Session = Depends(get_db)):
    return {"deleted": locks.purge_expired_locks(db)}
