from __future__ import annotations
from sqlalchemy.orm import Session

from core.exceptions import Forbidden, InvalidRequest, NotFound
from user.models import User, UserRole
from .models import Subscription


def get_subscription(db: Session, subscription_id: int) -> Subscription | None:
    return db.get(Subscription, subscription_id)


def get_owned_subscription(db: Session, subscription_id: int, user: User) -> Subscription:
    """Subscription the caller may book against: its parent, or an admin."""
    sub = db.get(Subscription, subscription_id)
    if not sub:
        raise NotFound("subscription not found")
    if sub.parent_id != user.id and user.role != UserRole.admin:
        raise Forbidden("not authorized for this subscription")
    return sub


def get_bookable_subscription(db: Session, subscription_id: int, user: User, tutor_id: int) -> Subscription:
    """
    Subscription the caller may book tutor_id against: its parent, an admin,
    or the subscription's own tutor booking for themselves.
    """
    sub = db.get(Subscription, subscription_id)
    if not sub:
        raise NotFound("subscription not found")

    is_own_tutor = user.role == UserRole.tutor and user.id == tutor_id and sub.tutor_id == user.id
    if sub.parent_id != user.id and user.role != UserRole.admin and not is_own_tutor:
        raise Forbidden("not authorized for this subscription")
    if sub.tutor_id is not None and sub.tutor_id != tutor_id:
        raise InvalidRequest("tutor does not teach this subscription")
    return sub
