from __future__ import annotations
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_tutor_or_admin, resolve_tutor_id
from user.models import User

from .schema import TimeBlockSchema, TimeBlockCreatePayload, TimeBlockCreate, TimeBlockUpdate
from . import service

timeblock_router = APIRouter(prefix="/time-blocks", tags=["Time Blocks"])


# List the tutor's blocks, optionally only those overlapping [start, end)
@timeblock_router.get("", response_model=list[TimeBlockSchema])
def list_time_blocks(
    tutor_id: Optional[int] = Query(None),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, tutor_id)
    return service.get_time_blocks(db, tutor_id=owner, overlaps_start=start, overlaps_end=end)


@timeblock_router.post("", response_model=TimeBlockSchema, status_code=status.HTTP_201_CREATED)
def create_time_block(
    payload: TimeBlockCreatePayload,
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, payload.tutor_id)
    dto = TimeBlockCreate(tutor_id=owner, **payload.model_dump(exclude={"tutor_id"}))
    try:
        return service.create_time_block(db, dto)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="time block already exists for this window")


@timeblock_router.patch("/{block_id}", response_model=TimeBlockSchema)
def update_time_block(
    block_id: int,
    payload: TimeBlockUpdate,
    tutor_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, tutor_id)
    if not service.get_time_block_for_tutor(db, block_id, owner):
        raise HTTPException(status_code=404, detail="time block not found")
    try:
        return service.update_time_block(db, block_id, payload, tutor_id=owner)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="time block already exists for this window")


@timeblock_router.delete("/{block_id}")
def delete_time_block(
    block_id: int,
    tutor_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, tutor_id)
    if not service.delete_time_block(db, block_id, tutor_id=owner):
        raise HTTPException(status_code=404, detail="time block not found")
    return {"message": "time block deleted"}
