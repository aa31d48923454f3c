"""
Token-based booking management for holders of the emailed link.

The token format is checked before any lookup, so malformed tokens are a
validation error regardless of what the datastore holds.
"""
from __future__ import annotations
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.clock import aware
from core.config_loader import settings
from core.exceptions import InvalidRequest, NotFound
from sessions.models import TutorSession, SessionStatus
from sessions.service import append_note, get_session_by_token
from user.models import User
from .schema import ManagedSessionSchema
from .tokens import is_valid_booking_token

logger = logging.getLogger(__name__)


def _check_token(token: str) -> None:
    if not is_valid_booking_token(token):
        raise InvalidRequest("invalid booking token")


def get_managed_session(db: Session, token: str) -> TutorSession:
    _check_token(token)
    row = get_session_by_token(db, token)
    if not row:
        raise NotFound("booking not found")
    return row


def describe(db: Session, row: TutorSession) -> ManagedSessionSchema:
    tutor = db.get(User, row.tutor_id)
    return ManagedSessionSchema(
        id=row.id,
        tutor_id=row.tutor_id,
        tutor_name=tutor.name if tutor else None,
        subscription_id=row.subscription_id,
        scheduled_at=aware(row.scheduled_at),
        ends_at=aware(row.ends_at),
        duration_minutes=row.duration_minutes,
        status=row.status,
        notes=row.notes,
    )


def cancel_by_token(db: Session, token: str, *, now: datetime) -> TutorSession:
    _check_token(token)
    row = db.scalars(
        select(TutorSession).where(TutorSession.management_token == token).with_for_update()
    ).first()
    if not row:
        db.rollback()
        raise NotFound("booking not found")

    problem = None
    if row.status == SessionStatus.cancelled:
        problem = "this session is already cancelled"
    elif row.status == SessionStatus.completed:
        problem = "cannot cancel a completed session"
    elif row.status == SessionStatus.no_show:
        problem = "cannot cancel a session marked as no-show"
    elif aware(row.scheduled_at) < aware(now):
        problem = "cannot cancel a session that has already passed"
    if problem:
        db.rollback()
        raise InvalidRequest(problem)

    row.status = SessionStatus.cancelled
    row.notes = append_note(row.notes, "Canceled via booking link")
    db.commit()
    db.refresh(row)
    logger.info("session %s cancelled via management link", row.id)
    return row


def reschedule_link(db: Session, token: str) -> str:
    row = get_managed_session(db, token)
    if row.status != SessionStatus.scheduled:
        raise InvalidRequest(f"cannot reschedule a {row.status.value} session")
    return f"{settings.FRONTEND_URL}/manage-booking/{token}/reschedule?session_id={row.id}"
