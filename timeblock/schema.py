from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.clock import aware


class TimeBlockSchema(BaseModel):
    id: int
    tutor_id: int
    start_at: datetime
    end_at: datetime
    reason: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_at", "end_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return aware(v)


# PUBLIC payload (what clients send)
class TimeBlockCreatePayload(BaseModel):
    tutor_id: Optional[int] = None
    start_at: datetime = Field(..., description="ISO8601; naive values are read as UTC")
    end_at:   datetime = Field(..., description="ISO8601; naive values are read as UTC")
    reason: Optional[str] = Field(None, max_length=255)
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_at >= self.end_at:
            raise ValueError("end time must be after start time")
        return self


# INTERNAL DTO for the service
class TimeBlockCreate(BaseModel):
    tutor_id: int
    start_at: datetime
    end_at: datetime
    reason: Optional[str] = None


class TimeBlockUpdate(BaseModel):
    start_at: Optional[datetime] = None
    end_at:   Optional[datetime] = None
    reason:   Optional[str] = Field(None, max_length=255)
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_partial_window(self):
        # Only validate if both ends provided
        if self.start_at is not None and self.end_at is not None:
            if self.start_at >= self.end_at:
                raise ValueError("end time must be after start time")
        return self
