from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_optional_user
from authz.deps import require_tutor_or_admin, resolve_tutor_id
from user.models import User, UserRole

from .schema import (
    AvailabilityWindowSchema,
    AvailabilityWindowCreatePayload,
    AvailabilityWindowCreate,
    AvailabilityWindowUpdate,
)
from . import service

availability_router = APIRouter(prefix="/availability", tags=["Availability"])


# Public read of a tutor's weekly windows. Signed-in tutors default to their own.
@availability_router.get("", response_model=list[AvailabilityWindowSchema])
def list_availability(
    tutor_id: Optional[int] = Query(None),
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    if tutor_id is None:
        if user is None or user.role != UserRole.tutor:
            raise HTTPException(status_code=422, detail="tutor_id is required")
        tutor_id = user.id
    return service.get_windows(db, tutor_id=tutor_id, day_of_week=day_of_week)


@availability_router.post("", response_model=AvailabilityWindowSchema, status_code=status.HTTP_201_CREATED)
def create_availability(
    payload: AvailabilityWindowCreatePayload,
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    tutor_id = resolve_tutor_id(user, payload.tutor_id)
    dto = AvailabilityWindowCreate(tutor_id=tutor_id, **payload.model_dump(exclude={"tutor_id"}))
    try:
        return service.create_window(db, dto)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="availability window already exists")


@availability_router.patch("/{window_id}", response_model=AvailabilityWindowSchema)
def update_availability(
    window_id: int,
    payload: AvailabilityWindowUpdate,
    tutor_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, tutor_id)
    try:
        row = service.update_window(db, window_id, payload, tutor_id=owner)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="availability window already exists")
    if not row:
        raise HTTPException(status_code=404, detail="availability window not found")
    return row


@availability_router.delete("/{window_id}")
def delete_availability(
    window_id: int,
    tutor_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_tutor_or_admin),
):
    owner = resolve_tutor_id(user, tutor_id)
    if not service.delete_window(db, window_id, tutor_id=owner):
        raise HTTPException(status_code=404, detail="availability window not found")
    return {"message": "availability window deleted"}
