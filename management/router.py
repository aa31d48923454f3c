from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from core.clock import get_now
from core.database import get_db
from notifications.service import queue_cancellation_confirmation
from .schema import ManagedSessionSchema, ManagedCancelResponse, RescheduleLinkResponse
from . import service

# Public: the token is the credential
manage_router = APIRouter(prefix="/manage", tags=["Booking Management"])


@manage_router.get("/{token}", response_model=ManagedSessionSchema)
def get_booking(token: str, db: Session = Depends(get_db)):
    row = service.get_managed_session(db, token)
    return service.describe(db, row)


@manage_router.post("/{token}/cancel", response_model=ManagedCancelResponse)
def cancel_booking(
    token: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    row = service.cancel_by_token(db, token, now=now)
    queue_cancellation_confirmation(background_tasks, db, row)
    return ManagedCancelResponse()


@manage_router.get("/{token}/reschedule-link", response_model=RescheduleLinkResponse)
def get_reschedule_link(token: str, db: Session = Depends(get_db)):
    return RescheduleLinkResponse(reschedule_url=service.reschedule_link(db, token))
