from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from sessions.models import SessionStatus


class ManagedSessionSchema(BaseModel):
    id: int
    tutor_id: int
    tutor_name: Optional[str] = None
    subscription_id: int
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: SessionStatus
    notes: Optional[str] = None


class ManagedCancelResponse(BaseModel):
    success: bool = True
    message: str = "Session cancelled successfully"


class RescheduleLinkResponse(BaseModel):
    reschedule_url: str
