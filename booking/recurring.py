"""
Recurring booking: N independent booking transactions, one result.

A clash on one date must neither undo earlier bookings nor stop later
attempts, so each prospective session is booked in its own transaction and
failures are only collected.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import aware
from subscription.service import get_bookable_subscription
from user.models import User
from .schema import BookingCreate, Cadence, RecurringBookingPayload, RecurringBookingResult
from .service import book_session

logger = logging.getLogger(__name__)


def expand_series(first_start: datetime, cadence: Cadence, count: int) -> list[datetime]:
    step = timedelta(days=cadence.days)
    first_start = aware(first_start)
    return [first_start + i * step for i in range(count)]


def book_recurring(
    db: Session,
    payload: RecurringBookingPayload,
    *,
    user: User,
    now: datetime,
) -> RecurringBookingResult:
    sub = get_bookable_subscription(db, payload.subscription_id, user, payload.tutor_id)
    parent_id, subscription_id = sub.parent_id, sub.id

    session_ids: list[int] = []
    failed: list[int] = []
    for index, item in enumerate(payload.sessions, start=1):
        dto = BookingCreate(
            tutor_id=payload.tutor_id,
            parent_id=parent_id,
            subscription_id=subscription_id,
            scheduled_at=item.scheduled_at,
            duration_minutes=payload.duration_minutes,
            notes=payload.notes,
        )
        try:
            row = book_session(db, dto, now=now)
        except HTTPException as e:
            logger.warning(
                "recurring booking %s/%s failed (%s): %s",
                index, len(payload.sessions), e.status_code, e.detail,
            )
            failed.append(index)
            continue
        except SQLAlchemyError:
            logger.exception("recurring booking %s/%s failed", index, len(payload.sessions))
            failed.append(index)
            continue
        session_ids.append(row.id)

    logger.info(
        "recurring booking for subscription %s: %s booked, %s failed",
        subscription_id, len(session_ids), len(failed),
    )
    return RecurringBookingResult(
        session_ids=session_ids,
        total_booked=len(session_ids),
        total_failed=len(failed),
        failed_indices=failed,
    )
