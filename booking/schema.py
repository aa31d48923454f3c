from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Cadence(str, Enum):
    weekly = "weekly"
    biweekly = "biweekly"

    @property
    def days(self) -> int:
        return 7 if self is Cadence.weekly else 14


# PUBLIC payload (what clients send)
class BookingCreatePayload(BaseModel):
    tutor_id: int
    subscription_id: int
    # defaults to the subscription's parent
    parent_id: Optional[int] = None
    scheduled_at: datetime = Field(..., description="ISO8601; naive values are read as UTC")
    duration_minutes: int = Field(..., gt=0, le=480)
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


# INTERNAL DTO for the booking transaction
class BookingCreate(BaseModel):
    tutor_id: int
    parent_id: int
    subscription_id: int
    scheduled_at: datetime
    duration_minutes: int = Field(..., gt=0)
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    session_id: int


class ProspectiveSession(BaseModel):
    scheduled_at: datetime
    model_config = ConfigDict(extra="forbid")


class RecurringBookingPayload(BaseModel):
    tutor_id: int
    subscription_id: int
    sessions: List[ProspectiveSession] = Field(..., min_length=1, max_length=104)
    duration_minutes: int = Field(..., gt=0, le=480)
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class RecurringBookingResult(BaseModel):
    session_ids: List[int]
    total_booked: int
    total_failed: int
    # 1-based positions in the request
    failed_indices: List[int]


class SeriesReschedulePayload(BaseModel):
    new_start_date: datetime = Field(..., description="new start of the earliest session")
    cadence: Cadence = Cadence.weekly
    model_config = ConfigDict(extra="forbid")


class SeriesRescheduleResponse(BaseModel):
    rescheduled_count: int


class SeriesCancelPayload(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    model_config = ConfigDict(extra="forbid")


class SeriesCancelResponse(BaseModel):
    canceled_count: int
