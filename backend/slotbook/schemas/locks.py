# backend/slotbook/schemas/locks.py

import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LockCreate(BaseModel):
    business_id: int
    date: date
    time: str = Field(description="Time in HH:MM format")
    duration_minutes: Optional[int] = Field(None, gt=0)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not re.match(r"^\d{1,2}:\d{2}$", v):
            raise ValueError("Time must be in HH:MM format")
        return v


class LockRead(BaseModel):
    lock_id: str
    business_id: int
    date: date
    time: str
    duration_minutes: int
    created_at: datetime
    expires_at: datetime

    model_config = {"from_attributes": True}


class LockPromote(BaseModel):
    order_id: Optional[str] = None


class BookingRead(BaseModel):
    booking_id: int
    business_id: int
    date: date
    time: str
    duration_minutes: int
    order_id: Optional[str] = None

    model_config = {"from_attributes": True}
