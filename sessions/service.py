from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.clock import aware
from core.exceptions import Forbidden, InvalidRequest, NotFound
from user.models import User, UserRole
from .models import TutorSession, SessionStatus, TERMINAL_STATUSES
from .schema import SessionStatusUpdate


def cancel_note(reason: Optional[str], *, by: str = "parent") -> str:
    return f"Canceled: {reason}" if reason else f"Canceled by {by}"


def append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


# -------- queries --------

def get_session(db: Session, session_id: int) -> TutorSession | None:
    return db.get(TutorSession, session_id)


def get_session_by_token(db: Session, token: str) -> TutorSession | None:
    stmt = select(TutorSession).where(TutorSession.management_token == token)
    return db.scalars(stmt).first()


def get_session_for_user(db: Session, session_id: int, user: User) -> TutorSession:
    """Session visible to its parent, its tutor or an admin."""
    row = db.get(TutorSession, session_id)
    if not row:
        raise NotFound("session not found")
    if user.role != UserRole.admin and user.id not in (row.parent_id, row.tutor_id):
        raise Forbidden()
    return row


def get_owned_session(db: Session, session_id: int, parent_id: int) -> TutorSession:
    row = db.get(TutorSession, session_id)
    if not row:
        raise NotFound("session not found")
    if row.parent_id != parent_id:
        raise Forbidden()
    return row


def list_sessions_for_user(
    db: Session,
    user: User,
    *,
    status: Optional[SessionStatus] = None,
    starting_after: Optional[datetime] = None,
) -> List[TutorSession]:
    stmt = select(TutorSession)
    if user.role == UserRole.tutor:
        stmt = stmt.where(TutorSession.tutor_id == user.id)
    elif user.role == UserRole.parent:
        stmt = stmt.where(TutorSession.parent_id == user.id)
    if status is not None:
        stmt = stmt.where(TutorSession.status == status)
    if starting_after is not None:
        stmt = stmt.where(TutorSession.scheduled_at > aware(starting_after))
    stmt = stmt.order_by(TutorSession.scheduled_at, TutorSession.id)
    return list(db.scalars(stmt))


def get_scheduled_sessions_for_tutor(
    db: Session,
    tutor_id: int,
    *,
    overlaps_start: Optional[datetime] = None,
    overlaps_end: Optional[datetime] = None,
    exclude_ids: Iterable[int] = (),
) -> List[TutorSession]:
    stmt = select(TutorSession).where(
        TutorSession.tutor_id == tutor_id,
        TutorSession.status == SessionStatus.scheduled,
    )
    if overlaps_start is not None:
        stmt = stmt.where(TutorSession.ends_at > aware(overlaps_start))
    if overlaps_end is not None:
        stmt = stmt.where(TutorSession.scheduled_at < aware(overlaps_end))
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        stmt = stmt.where(TutorSession.id.not_in(exclude_ids))
    stmt = stmt.order_by(TutorSession.scheduled_at, TutorSession.id)
    return list(db.scalars(stmt))


def get_scheduled_sessions_for_subscription(db: Session, subscription_id: int) -> List[TutorSession]:
    stmt = (
        select(TutorSession)
        .where(
            TutorSession.subscription_id == subscription_id,
            TutorSession.status == SessionStatus.scheduled,
        )
        .order_by(TutorSession.scheduled_at.asc(), TutorSession.id.asc())
    )
    return list(db.scalars(stmt))


# -------- mutations --------

def cancel_session(db: Session, session_id: int, *, parent_id: int, reason: Optional[str] = None) -> TutorSession:
    row = get_owned_session(db, session_id, parent_id)
    if row.status != SessionStatus.scheduled:
        raise InvalidRequest(f"cannot cancel a {row.status.value} session")

    row.status = SessionStatus.cancelled
    row.notes = append_note(row.notes, cancel_note(reason))
    db.commit()
    db.refresh(row)
    return row


def update_status(db: Session, session_id: int, patch: SessionStatusUpdate, *, user: User) -> TutorSession:
    """Tutor of the session (or an admin) closes it out: completed, cancelled or no_show."""
    row = db.get(TutorSession, session_id)
    if not row:
        raise NotFound("session not found")
    if user.role != UserRole.admin and row.tutor_id != user.id:
        raise Forbidden()
    if row.status in TERMINAL_STATUSES:
        raise InvalidRequest(f"session is already {row.status.value}")
    if patch.status == SessionStatus.scheduled:
        raise InvalidRequest("session is already scheduled")

    row.status = patch.status
    if patch.notes:
        row.notes = append_note(row.notes, patch.notes)
    db.commit()
    db.refresh(row)
    return row
