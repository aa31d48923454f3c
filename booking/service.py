"""
Conflict-safe booking transaction.

Every new session row is created here, and every move of a scheduled
session goes through the same locked overlap check. Locking is scoped to
one tutor: the tutor's user row is locked FOR UPDATE, then the tutor's
scheduled sessions overlapping the candidate range. Bookings for different
tutors never wait on each other.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import aware
from core.config_loader import settings
from core.exceptions import BookingConflict, InvalidRequest, NotFound
from management.tokens import generate_booking_token
from sessions.models import TutorSession, SessionStatus
from sessions.service import get_owned_session
from subscription.service import get_bookable_subscription
from user.models import User, UserRole
from .schema import BookingCreate, BookingCreatePayload

logger = logging.getLogger(__name__)


# ---------- locking ----------

def _apply_lock_timeout(db: Session) -> None:
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = {int(settings.LOCK_TIMEOUT_MS)}"))


def lock_tutor(db: Session, tutor_id: int) -> User:
    """Tutor-scoped mutex for the rest of the current transaction."""
    _apply_lock_timeout(db)
    tutor = db.scalars(
        select(User).where(User.id == tutor_id, User.role == UserRole.tutor).with_for_update()
    ).first()
    if not tutor:
        raise NotFound("tutor not found")
    return tutor


def lock_overlapping_sessions(
    db: Session,
    tutor_id: int,
    start: datetime,
    end: datetime,
    *,
    exclude_ids: Iterable[int] = (),
) -> list[TutorSession]:
    stmt = select(TutorSession).where(
        TutorSession.tutor_id == tutor_id,
        TutorSession.status == SessionStatus.scheduled,
        TutorSession.scheduled_at < end,
        TutorSession.ends_at > start,
    )
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        stmt = stmt.where(TutorSession.id.not_in(exclude_ids))
    return list(db.scalars(stmt.with_for_update()))


def _require_future(start: datetime, now: datetime) -> None:
    if start <= aware(now):
        raise InvalidRequest("cannot schedule a session in the past")


# ---------- booking transaction ----------

def book_session(db: Session, dto: BookingCreate, *, now: datetime) -> TutorSession:
    """
    Insert one scheduled session, or raise BookingConflict if any scheduled
    session of the tutor overlaps [start, start + duration). Never retries;
    datastore errors (including lock timeouts) propagate unchanged.
    """
    start = aware(dto.scheduled_at)
    _require_future(start, now)
    if dto.duration_minutes <= 0:
        raise InvalidRequest("duration must be positive")
    end = start + timedelta(minutes=dto.duration_minutes)

    try:
        lock_tutor(db, dto.tutor_id)
        clashes = lock_overlapping_sessions(db, dto.tutor_id, start, end)
        if clashes:
            raise BookingConflict()

        row = TutorSession(
            tutor_id=dto.tutor_id,
            parent_id=dto.parent_id,
            subscription_id=dto.subscription_id,
            status=SessionStatus.scheduled,
            management_token=generate_booking_token(),
            notes=dto.notes,
        )
        row.set_schedule(start, dto.duration_minutes)
        db.add(row)
        db.commit()
    except (BookingConflict, NotFound):
        db.rollback()
        logger.info("booking rejected for tutor %s at %s", dto.tutor_id, start.isoformat())
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to book session for tutor %s", dto.tutor_id)
        raise

    db.refresh(row)
    logger.info("booked session %s for tutor %s at %s", row.id, row.tutor_id, start.isoformat())
    return row


def create_booking(db: Session, payload: BookingCreatePayload, *, user: User, now: datetime) -> TutorSession:
    """Single booking: check the caller may book on the subscription, then run the transaction."""
    _require_future(aware(payload.scheduled_at), now)
    sub = get_bookable_subscription(db, payload.subscription_id, user, payload.tutor_id)
    if payload.parent_id is not None and payload.parent_id != sub.parent_id:
        raise InvalidRequest("parent does not own this subscription")

    dto = BookingCreate(
        tutor_id=payload.tutor_id,
        parent_id=sub.parent_id,
        subscription_id=sub.id,
        scheduled_at=payload.scheduled_at,
        duration_minutes=payload.duration_minutes,
        notes=payload.notes,
    )
    return book_session(db, dto, now=now)


# ---------- single reschedule ----------

def reschedule_session(
    db: Session,
    session_id: int,
    new_scheduled_at: datetime,
    *,
    parent_id: int,
    now: datetime,
) -> TutorSession:
    """Move one scheduled session; its own old range does not count as a clash."""
    row = get_owned_session(db, session_id, parent_id)
    if row.status != SessionStatus.scheduled:
        raise InvalidRequest(f"cannot reschedule a {row.status.value} session")
    start = aware(new_scheduled_at)
    _require_future(start, now)
    end = start + timedelta(minutes=row.duration_minutes)

    try:
        lock_tutor(db, row.tutor_id)
        db.refresh(row)
        if row.status != SessionStatus.scheduled:
            raise InvalidRequest(f"cannot reschedule a {row.status.value} session")
        if lock_overlapping_sessions(db, row.tutor_id, start, end, exclude_ids=[row.id]):
            raise BookingConflict()
        row.set_schedule(start, row.duration_minutes)
        db.commit()
    except (BookingConflict, InvalidRequest, NotFound):
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to reschedule session %s", session_id)
        raise

    db.refresh(row)
    logger.info("rescheduled session %s to %s", row.id, start.isoformat())
    return row

