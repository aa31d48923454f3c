from __future__ import annotations
from datetime import time
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class AvailabilityWindowSchema(BaseModel):
    id: int
    tutor_id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


# PUBLIC payload (what clients send)
class AvailabilityWindowCreatePayload(BaseModel):
    # admins set this to act on behalf of a tutor
    tutor_id: Optional[int] = None
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: time = Field(..., description="HH:MM")
    end_time: time = Field(..., description="HH:MM")
    is_active: bool = True
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("end time must be after start time")
        return self


# INTERNAL DTO for the service
class AvailabilityWindowCreate(BaseModel):
    tutor_id: int
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time
    is_active: bool = True


class AvailabilityWindowUpdate(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_active: Optional[bool] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_partial_window(self):
        if self.start_time is not None and self.end_time is not None:
            if self.start_time >= self.end_time:
                raise ValueError("end time must be after start time")
        return self
