from fastapi import Depends, HTTPException
from auth.services.auth_service import get_current_active_user
from user.models import User, UserRole


def require_parent(user: User = Depends(get_current_active_user)) -> User:
    if user.role != UserRole.parent:
        raise HTTPException(status_code=403, detail="Parent role required")
    return user


def require_tutor(user: User = Depends(get_current_active_user)) -> User:
    if user.role != UserRole.tutor:
        raise HTTPException(status_code=403, detail="Tutor role required")
    return user


def require_admin(user: User = Depends(get_current_active_user)) -> User:
    if user.role != UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def require_tutor_or_admin(user: User = Depends(get_current_active_user)) -> User:
    if user.role not in (UserRole.tutor, UserRole.admin):
        raise HTTPException(status_code=403, detail="Tutor or admin role required")
    return user


def resolve_tutor_id(user: User, tutor_id: int | None) -> int:
    """Tutors act on themselves; admins must name the tutor they act for."""
    if user.role == UserRole.tutor:
        if tutor_id is not None and tutor_id != user.id:
            raise HTTPException(status_code=403, detail="cannot manage another tutor")
        return user.id
    if user.role == UserRole.admin:
        if tutor_id is None:
            raise HTTPException(status_code=422, detail="tutor_id is required")
        return tutor_id
    raise HTTPException(status_code=403, detail="Tutor or admin role required")
