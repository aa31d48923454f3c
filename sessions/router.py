from __future__ import annotations
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from core.clock import get_now
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_parent, require_tutor_or_admin
from booking.service import reschedule_session
from notifications.service import queue_cancellation_confirmation
from user.models import User

from .models import SessionStatus
from .schema import (
    SessionSchema,
    SessionRescheduleRequest,
    SessionCancelRequest,
    SessionStatusUpdate,
    SuccessResponse,
)
from . import service

session_router = APIRouter(prefix="/sessions", tags=["Sessions"])


# Parents see their bookings, tutors their teaching schedule, admins everything
@session_router.get("", response_model=list[SessionSchema])
def list_sessions(
    status: Optional[SessionStatus] = Query(None),
    upcoming: bool = Query(False),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_active_user),
    now: datetime = Depends(get_now),
):
    return service.list_sessions_for_user(
        db, user, status=status, starting_after=now if upcoming else None
    )


@session_router.get("/{session_id}", response_model=SessionSchema)
def get_session(session_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_active_user)):
    return service.get_session_for_user(db, session_id, user)


@session_router.post("/{session_id}/reschedule", response_model=SessionSchema)
def reschedule(
    session_id: int,
    payload: SessionRescheduleRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_parent),
    now: datetime = Depends(get_now),
):
    return reschedule_session(db, session_id, payload.new_scheduled_at, parent_id=user.id, now=now)


@session_router.post("/{session_id}/cancel", response_model=SuccessResponse)
def cancel(
    session_id: int,
    payload: SessionCancelRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_parent),
):
    row = service.cancel_session(db, session_id, parent_id=user.id, reason=payload.reason)
    queue_cancellation_confirmation(background_tasks, db, row)
    return SuccessResponse()


@session_router.patch("/{session_id}/status", response_model=SessionSchema)
def update_status(
    session_id: int,
    payload: SessionStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    return service.update_status(db, session_id, payload, user=user)
