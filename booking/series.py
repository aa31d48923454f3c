"""
Bulk operations over the scheduled sessions of one subscription.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import aware
from core.exceptions import BookingConflict, InvalidRequest, NotFound
from scheduling.slots import overlaps
from sessions.models import TutorSession, SessionStatus
from sessions.service import append_note, cancel_note, get_scheduled_sessions_for_subscription
from subscription.service import get_owned_subscription
from user.models import User
from .recurring import expand_series
from .schema import Cadence
from .service import lock_overlapping_sessions, lock_tutor

logger = logging.getLogger(__name__)


def reschedule_series(
    db: Session,
    subscription_id: int,
    new_start: datetime,
    cadence: Cadence,
    *,
    user: User,
    now: datetime,
) -> int:
    """
    Move the series as a block: the i-th scheduled session (by current start)
    goes to new_start + i * cadence, keeping its duration. All moves are
    checked against the tutors' other scheduled sessions under lock and
    applied together, or not at all.
    """
    sub = get_owned_subscription(db, subscription_id, user)
    new_start = aware(new_start)
    if new_start <= aware(now):
        raise InvalidRequest("cannot schedule a session in the past")

    try:
        series = get_scheduled_sessions_for_subscription(db, sub.id)
        if not series:
            raise NotFound("no scheduled sessions found")

        for tutor_id in sorted({s.tutor_id for s in series}):
            lock_tutor(db, tutor_id)
        # re-read under lock; a concurrent cancel may have shrunk the series
        series = get_scheduled_sessions_for_subscription(db, sub.id)
        if not series:
            raise NotFound("no scheduled sessions found")

        series_ids = [s.id for s in series]
        starts = expand_series(new_start, cadence, len(series))
        moves = [(s, start, start + timedelta(minutes=s.duration_minutes)) for s, start in zip(series, starts)]

        for i, (s, start, end) in enumerate(moves):
            if lock_overlapping_sessions(db, s.tutor_id, start, end, exclude_ids=series_ids):
                raise BookingConflict(f"session {i + 1} of the series conflicts with an existing booking")
            for other, o_start, o_end in moves[:i]:
                if other.tutor_id == s.tutor_id and overlaps(start, end, o_start, o_end):
                    raise BookingConflict("rescheduled sessions would overlap each other")

        for s, start, _ in moves:
            s.set_schedule(start, s.duration_minutes)
        db.commit()
    except (BookingConflict, InvalidRequest, NotFound):
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to reschedule series %s", subscription_id)
        raise

    logger.info("rescheduled %s sessions of subscription %s from %s", len(moves), sub.id, new_start.isoformat())
    return len(moves)


def cancel_series(
    db: Session,
    subscription_id: int,
    *,
    user: User,
    reason: Optional[str] = None,
) -> int:
    """Cancel every scheduled session of the subscription; returns how many changed."""
    sub = get_owned_subscription(db, subscription_id, user)
    try:
        rows = list(db.scalars(
            select(TutorSession)
            .where(
                TutorSession.subscription_id == sub.id,
                TutorSession.status == SessionStatus.scheduled,
            )
            .with_for_update()
        ))
        note = cancel_note(reason)
        for row in rows:
            row.status = SessionStatus.cancelled
            row.notes = append_note(row.notes, note)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to cancel series %s", subscription_id)
        raise

    logger.info("cancelled %s sessions of subscription %s", len(rows), sub.id)
    return len(rows)
