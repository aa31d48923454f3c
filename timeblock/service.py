from __future__ import annotations
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from core.clock import aware
from core.exceptions import InvalidRequest
from .models import TimeBlock
from .schema import TimeBlockCreate, TimeBlockUpdate


def _validate_window(start_at: datetime, end_at: datetime) -> None:
    if start_at >= end_at:
        raise InvalidRequest("end time must be after start time")


# -------- queries --------

def get_time_block(db: Session, block_id: int) -> TimeBlock | None:
    return db.get(TimeBlock, block_id)


def get_time_block_for_tutor(db: Session, block_id: int, tutor_id: int) -> TimeBlock | None:
    stmt = select(TimeBlock).where(TimeBlock.id == block_id, TimeBlock.tutor_id == tutor_id)
    return db.scalars(stmt).first()


def get_time_blocks(
    db: Session,
    *,
    tutor_id: int,
    overlaps_start: Optional[datetime] = None,
    overlaps_end: Optional[datetime] = None,
    exclude_id: Optional[int] = None,
) -> List[TimeBlock]:
    """A tutor's blocks, optionally only those overlapping [overlaps_start, overlaps_end)."""
    stmt = select(TimeBlock).where(TimeBlock.tutor_id == tutor_id)
    if overlaps_start is not None and overlaps_end is not None:
        s = aware(overlaps_start)
        e = aware(overlaps_end)
        # overlap if (start < e) AND (end > s)
        stmt = stmt.where(and_(TimeBlock.start_at < e, TimeBlock.end_at > s))
    if exclude_id is not None:
        stmt = stmt.where(TimeBlock.id != exclude_id)
    stmt = stmt.order_by(TimeBlock.start_at.asc(), TimeBlock.id)
    return list(db.scalars(stmt))


# -------- mutations --------

def create_time_block(db: Session, dto: TimeBlockCreate) -> TimeBlock:
    start = aware(dto.start_at)
    end = aware(dto.end_at)
    _validate_window(start, end)

    if get_time_blocks(db, tutor_id=dto.tutor_id, overlaps_start=start, overlaps_end=end):
        raise InvalidRequest("this time period overlaps with an existing block")

    row = TimeBlock(
        tutor_id=dto.tutor_id,
        start_at=start,
        end_at=end,
        reason=dto.reason,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_time_block(
    db: Session,
    block_id: int,
    patch: TimeBlockUpdate,
    *,
    tutor_id: int,
) -> TimeBlock | None:
    row = get_time_block_for_tutor(db, block_id, tutor_id)
    if not row:
        return None

    data = patch.model_dump(exclude_unset=True, exclude_none=True)
    new_start = aware(data.get("start_at", row.start_at))
    new_end = aware(data.get("end_at", row.end_at))
    _validate_window(new_start, new_end)

    if get_time_blocks(db, tutor_id=tutor_id, overlaps_start=new_start, overlaps_end=new_end, exclude_id=row.id):
        raise InvalidRequest("this time period overlaps with an existing block")

    for k, v in data.items():
        setattr(row, k, aware(v) if k in ("start_at", "end_at") else v)

    db.commit()
    db.refresh(row)
    return row


def delete_time_block(db: Session, block_id: int, *, tutor_id: int) -> bool:
    row = get_time_block_for_tutor(db, block_id, tutor_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True
