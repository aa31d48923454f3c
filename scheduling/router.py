from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.clock import get_now
from core.database import get_db
from .schema import SlotSchema, EligibilitySchema
from . import slots

scheduling_router = APIRouter(prefix="/tutors", tags=["Scheduling"])


# Advisory: the booking call re-checks under lock
@scheduling_router.get("/{tutor_id}/slots", response_model=list[SlotSchema])
def list_slots(
    tutor_id: int,
    on: date = Query(..., alias="date", description="YYYY-MM-DD"),
    duration_minutes: int = Query(60, gt=0, le=480),
    exclude_session_id: Optional[int] = Query(None, description="session being rescheduled"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    starts = slots.get_available_slots(
        db,
        tutor_id=tutor_id,
        target_date=on,
        duration_minutes=duration_minutes,
        now=now,
        exclude_session_id=exclude_session_id,
    )
    return [SlotSchema(start_time=s) for s in starts]


@scheduling_router.get("/{tutor_id}/eligibility", response_model=EligibilitySchema)
def check_eligibility(
    tutor_id: int,
    start_at: datetime,
    end_at: datetime,
    db: Session = Depends(get_db),
):
    available = slots.is_tutor_available(db, tutor_id, start_at, end_at)
    return EligibilitySchema(tutor_id=tutor_id, start_at=start_at, end_at=end_at, available=available)
