from datetime import datetime
from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from cafe_pos.core.clock import as_aware


class ShiftRequest(BaseModel):
    """Schema for creating or editing a shift. Naive times are read in the configured time zone."""
    user_id: int
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def attach_timezone(cls, value: datetime) -> datetime:
        return as_aware(value)

    @model_validator(mode="after")
    def check_interval(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self


class ShiftResponse(BaseModel):
    id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    has_conflict: bool = False


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicting_shift: Optional[ShiftResponse] = None
