from __future__ import annotations
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from core.clock import get_now
from core.database import get_db
from core.exceptions import NotFound
from auth.services.auth_service import get_current_active_user
from notifications.service import queue_booking_confirmation
from sessions.service import get_session
from user.models import User

from .schema import (
    BookingCreatePayload,
    BookingResponse,
    RecurringBookingPayload,
    RecurringBookingResult,
    SeriesReschedulePayload,
    SeriesRescheduleResponse,
    SeriesCancelPayload,
    SeriesCancelResponse,
)
from . import service, recurring, series

booking_router = APIRouter(prefix="/bookings", tags=["Bookings"])


@booking_router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreatePayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
    now: datetime = Depends(get_now),
):
    row = service.create_booking(db, payload, user=user, now=now)
    queue_booking_confirmation(background_tasks, db, row)
    return BookingResponse(session_id=row.id)


# Partial success is a normal result: callers inspect total_failed
@booking_router.post("/recurring", response_model=RecurringBookingResult)
def create_recurring_booking(
    payload: RecurringBookingPayload,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
    now: datetime = Depends(get_now),
):
    result = recurring.book_recurring(db, payload, user=user, now=now)
    if result.session_ids:
        first = get_session(db, result.session_ids[0])
        if first:
            queue_booking_confirmation(background_tasks, db, first)
    return result


@booking_router.post("/series/{subscription_id}/reschedule", response_model=SeriesRescheduleResponse)
def reschedule_series(
    subscription_id: int,
    payload: SeriesReschedulePayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
    now: datetime = Depends(get_now),
):
    count = series.reschedule_series(
        db, subscription_id, payload.new_start_date, payload.cadence, user=user, now=now
    )
    return SeriesRescheduleResponse(rescheduled_count=count)


@booking_router.post("/series/{subscription_id}/cancel", response_model=SeriesCancelResponse)
def cancel_series(
    subscription_id: int,
    payload: SeriesCancelPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
):
    count = series.cancel_series(db, subscription_id, user=user, reason=payload.reason)
    if count == 0:
        raise NotFound("no scheduled sessions found")
    return SeriesCancelResponse(canceled_count=count)
