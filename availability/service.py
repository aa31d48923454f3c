from __future__ import annotations
from datetime import time
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.exceptions import InvalidRequest
from .models import AvailabilityWindow
from .schema import AvailabilityWindowCreate, AvailabilityWindowUpdate


def _validate_window(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise InvalidRequest("end time must be after start time")


# -------- queries --------

def get_window(db: Session, window_id: int) -> AvailabilityWindow | None:
    return db.get(AvailabilityWindow, window_id)


def get_window_for_tutor(db: Session, window_id: int, tutor_id: int) -> AvailabilityWindow | None:
    stmt = select(AvailabilityWindow).where(
        AvailabilityWindow.id == window_id, AvailabilityWindow.tutor_id == tutor_id
    )
    return db.scalars(stmt).first()


def get_windows(
    db: Session,
    *,
    tutor_id: int,
    day_of_week: Optional[int] = None,
    active_only: bool = False,
) -> List[AvailabilityWindow]:
    stmt = select(AvailabilityWindow).where(AvailabilityWindow.tutor_id == tutor_id)
    if day_of_week is not None:
        stmt = stmt.where(AvailabilityWindow.day_of_week == day_of_week)
    if active_only:
        stmt = stmt.where(AvailabilityWindow.is_active.is_(True))
    stmt = stmt.order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.start_time, AvailabilityWindow.id)
    return list(db.scalars(stmt))


# -------- mutations --------

def create_window(db: Session, dto: AvailabilityWindowCreate) -> AvailabilityWindow:
    _validate_window(dto.start_time, dto.end_time)
    row = AvailabilityWindow(
        tutor_id=dto.tutor_id,
        day_of_week=dto.day_of_week,
        start_time=dto.start_time,
        end_time=dto.end_time,
        is_active=dto.is_active,
    )
    db.add(row)
    # IntegrityError bubbles; router maps duplicates to 409
    db.commit()
    db.refresh(row)
    return row


def update_window(
    db: Session,
    window_id: int,
    patch: AvailabilityWindowUpdate,
    *,
    tutor_id: int,
) -> AvailabilityWindow | None:
    row = get_window_for_tutor(db, window_id, tutor_id)
    if not row:
        return None

    data = patch.model_dump(exclude_unset=True, exclude_none=True)
    _validate_window(data.get("start_time", row.start_time), data.get("end_time", row.end_time))

    for k, v in data.items():
        setattr(row, k, v)

    db.commit()
    db.refresh(row)
    return row


def delete_window(db: Session, window_id: int, *, tutor_id: int) -> bool:
    row = get_window_for_tutor(db, window_id, tutor_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True
