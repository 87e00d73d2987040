"""
Pydantic schemas for slot grid API.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field


class SlotGridEntryRead(BaseModel):
    """Status of a single (date, time) cell."""
    date: date
    time: str  # "HH:MM"
    status: Literal["available", "booked", "blocked", "locked"]
    block_id: Optional[int] = Field(None, description="Set when status is 'blocked'")

    model_config = {"from_attributes": True}


class SlotGridResponse(BaseModel):
    """Business calendar view of the timeline."""
    business_id: int
    start_date: date
    end_date: date
    slot_interval_minutes: int
    duration_minutes: int
    slots: list[SlotGridEntryRead]

    model_config = {"from_attributes": True}


class AvailableTimeRead(BaseModel):
    """Customer picker cell."""
    date: date
    time: str
    available: bool


class AvailableTimesResponse(BaseModel):
    business_id: int
    start_date: date
    end_date: date
    duration_minutes: int
    slots: list[AvailableTimeRead]
