from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.clock import aware
from .models import SessionStatus


class SessionSchema(BaseModel):
    id: int
    tutor_id: int
    parent_id: int
    subscription_id: int
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: SessionStatus
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

    # SQLite hands back naive values
    @field_validator("scheduled_at", "ends_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return aware(v)


class SessionRescheduleRequest(BaseModel):
    new_scheduled_at: datetime = Field(..., description="ISO8601; naive values are read as UTC")
    model_config = ConfigDict(extra="forbid")


class SessionCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    model_config = ConfigDict(extra="forbid")


class SessionStatusUpdate(BaseModel):
    status: SessionStatus
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class SuccessResponse(BaseModel):
    success: bool = True
