# backend/slotbook/routers/checkout.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import CheckoutSlotLostError, SlotEngineError, http_status_for
from ..schemas.checkout import (
    CheckoutReserve,
    CheckoutReserveRead,
    CheckoutSelection,
    CheckoutSlotLost,
    OrderCancelled,
    SubOrderRead,
)
from ..schemas.locks import LockRead
from ..services import checkout as checkout_service

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/reserve", response_model=CheckoutReserveRead, status_code=status.HTTP_201_CREATED)
def reserve_checkout(data: CheckoutReserve, db: Session = Depends(get_db)):
    """
    Lock one slot per business before payment.

    On 409 the body names the business whose slot was lost and echoes the
    other selections so the client only asks for the failed one again.
    """
    selections = [checkout_service.SlotSelection(**s.model_dump()) for s in data.selections]
    try:
        hold = checkout_service.reserve_checkout(db, selections)
    except CheckoutSlotLostError as exc:
        body = CheckoutSlotLost(
            message=str(exc),
            business_id=exc.business_id,
            lost=CheckoutSelection.model_validate(exc.lost),
            remaining=[CheckoutSelection.model_validate(s) for s in exc.remaining],
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))
    except SlotEngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc))

    return CheckoutReserveRead(
        sub_orders=[
            SubOrderRead(business_id=sub.business_id, lock=LockRead.model_validate(sub.lock))
            for sub in hold.sub_orders
        ]
    )


@router.post("/abandon", status_code=status.HTTP_204_NO_CONTENT)
def abandon_checkout(data: OrderCancelled, db: Session = Depends(get_db)):
    """Customer left checkout: free every held slot right away."""
    checkout_service.abandon_checkout(db, data.lock_ids)
