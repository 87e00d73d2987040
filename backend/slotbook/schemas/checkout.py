# backend/slotbook/schemas/checkout.py

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from .locks import LockRead


class CheckoutSelection(BaseModel):
    business_id: int
    business_name: Optional[str] = None
    date: date
    time: str
    duration_minutes: Optional[int] = Field(None, gt=0)

    model_config = {"from_attributes": True}


class CheckoutReserve(BaseModel):
    selections: list[CheckoutSelection] = Field(min_length=1)


class SubOrderRead(BaseModel):
    business_id: int
    lock: LockRead


class CheckoutReserveRead(BaseModel):
    sub_orders: list[SubOrderRead]


class CheckoutSlotLost(BaseModel):
    """409 body: which business lost its slot, and what stays selected."""
    message: str
    business_id: int
    lost: CheckoutSelection
    remaining: list[CheckoutSelection]


class PaymentSucceeded(BaseModel):
    lock_id: str
    order_id: Optional[str] = None


class OrderCancelled(BaseModel):
    order_id: Optional[str] = None
    lock_ids: list[str]
