# backend/slotbook/schemas/availability.py

import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

TIME_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not TIME_RE.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


class ScheduleDayWrite(BaseModel):
    weekday: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    is_available: bool = False
    start_time: str = "09:00"
    end_time: str = "17:00"

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)


class ScheduleDayRead(BaseModel):
    weekday: int
    is_available: bool
    start_time: str
    end_time: str

    model_config = {"from_attributes": True}


class WeeklyScheduleWrite(BaseModel):
    days: list[ScheduleDayWrite]


class WeeklyScheduleRead(BaseModel):
    business_id: int
    days: list[ScheduleDayRead]


class SlotToggle(BaseModel):
    time: str
    enabled: bool = True

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)


class SlotOverridesWrite(BaseModel):
    slots_by_day: dict[int, list[SlotToggle]]


class SlotOverridesRead(BaseModel):
    business_id: int
    slots_by_day: dict[int, list[SlotToggle]]


class AvailabilityBlockCreate(BaseModel):
    block_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    is_all_day: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)


class CalendarSlotBlockCreate(BaseModel):
    """Block one grid cell from the business calendar."""
    date: date
    time: str
    duration_minutes: int = Field(60, gt=0)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)


class AvailabilityBlockRead(BaseModel):
    id: int
    business_id: int
    block_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    is_all_day: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
