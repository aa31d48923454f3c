"""
Offerable slot computation.

The slot list is advisory: it is computed from reads that may be stale by
the time a booking arrives, and the booking transaction re-checks overlap
under lock. Both sides share `overlaps` so they agree on what a clash is.
"""
from __future__ import annotations
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from core.clock import aware
from core.config_loader import settings
from core.exceptions import InvalidRequest
from availability.models import AvailabilityWindow
from availability import service as availability_service
from timeblock.models import TimeBlock
from timeblock import service as timeblock_service
from sessions.models import TutorSession, SessionStatus
from sessions import service as session_service

SLOT_GRANULARITY_MINUTES = settings.SLOT_GRANULARITY_MINUTES


# ---------- helpers ----------

def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) ranges intersect."""
    return (a_start < b_end) and (a_end > b_start)


def day_of_week(d: date) -> int:
    # 0=Sunday .. 6=Saturday
    return (d.weekday() + 1) % 7


def day_start(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


# ---------- pure resolver ----------

def resolve_slots(
    *,
    target_date: date,
    duration_minutes: int,
    now: datetime,
    windows: Iterable[AvailabilityWindow],
    blocks: Iterable[TimeBlock],
    sessions: Iterable[TutorSession],
    exclude_session_id: Optional[int] = None,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
) -> list[datetime]:
    """
    Start instants on target_date where a session of duration_minutes fits:
    inside an active window for that weekday, strictly after now, clear of
    every time block and every scheduled session (except the one being
    rescheduled). No windows for the day means no slots.
    """
    dow = day_of_week(target_date)
    day_windows = [w for w in windows if w.is_active and w.day_of_week == dow]
    if not day_windows:
        return []

    now = aware(now)
    midnight = day_start(target_date)
    busy = [(aware(b.start_at), aware(b.end_at)) for b in blocks]
    busy += [
        (s.start, s.end)
        for s in sessions
        if s.id != exclude_session_id and s.status == SessionStatus.scheduled
    ]
    length = timedelta(minutes=duration_minutes)

    accepted: set[datetime] = set()
    for w in day_windows:
        cursor = _minutes(w.start_time)
        end = _minutes(w.end_time)
        while cursor + duration_minutes <= end:
            start = midnight + timedelta(minutes=cursor)
            cursor += granularity_minutes
            if start <= now:
                continue
            stop = start + length
            if any(overlaps(start, stop, b_start, b_end) for b_start, b_end in busy):
                continue
            accepted.add(start)

    return sorted(accepted)


def window_contains(windows: Sequence[AvailabilityWindow], start: datetime, end: datetime) -> bool:
    """Some active window on start's weekday covers the whole time-of-day span."""
    start = aware(start)
    end = aware(end)
    midnight = day_start(start.date())
    start_min = (start - midnight).total_seconds() / 60
    end_min = (end - midnight).total_seconds() / 60
    dow = day_of_week(start.date())
    return any(
        w.is_active
        and w.day_of_week == dow
        and _minutes(w.start_time) <= start_min
        and _minutes(w.end_time) >= end_min
        for w in windows
    )


# ---------- datastore-backed entry points ----------

def get_available_slots(
    db: Session,
    *,
    tutor_id: int,
    target_date: date,
    duration_minutes: int,
    now: datetime,
    exclude_session_id: Optional[int] = None,
) -> list[datetime]:
    if duration_minutes <= 0:
        raise InvalidRequest("duration must be positive")

    windows = availability_service.get_windows(
        db, tutor_id=tutor_id, day_of_week=day_of_week(target_date), active_only=True
    )
    if not windows:
        return []

    # windows end within the day, so no slot crosses midnight
    lo = day_start(target_date)
    hi = lo + timedelta(days=1)
    blocks = timeblock_service.get_time_blocks(db, tutor_id=tutor_id, overlaps_start=lo, overlaps_end=hi)
    booked = session_service.get_scheduled_sessions_for_tutor(
        db, tutor_id, overlaps_start=lo, overlaps_end=hi
    )
    return resolve_slots(
        target_date=target_date,
        duration_minutes=duration_minutes,
        now=now,
        windows=windows,
        blocks=blocks,
        sessions=booked,
        exclude_session_id=exclude_session_id,
    )


def is_tutor_available(db: Session, tutor_id: int, start: datetime, end: datetime) -> bool:
    """
    Point-in-time eligibility: no time block overlaps [start, end) and an
    active weekly window fully contains it. Existing sessions are not
    consulted; only the booking transaction guarantees no overlap.
    """
    start = aware(start)
    end = aware(end)
    if start >= end:
        raise InvalidRequest("end time must be after start time")

    if timeblock_service.get_time_blocks(db, tutor_id=tutor_id, overlaps_start=start, overlaps_end=end):
        return False

    windows = availability_service.get_windows(
        db, tutor_id=tutor_id, day_of_week=day_of_week(start.date()), active_only=True
    )
    return window_contains(windows, start, end)
