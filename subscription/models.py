from __future__ import annotations
from enum import Enum
from sqlalchemy import ForeignKey, Integer, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base


class SubscriptionStatus(str, Enum):
    active = "active"
    paused = "paused"
    cancelled = "cancelled"
    completed = "completed"


class Subscription(Base):
    """Course enrollment; the scheduler only uses it to group and own sessions."""
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    parent_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    tutor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )
    course_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[SubscriptionStatus] = mapped_column(
        SAEnum(SubscriptionStatus, name="subscription_status"),
        nullable=False,
        default=SubscriptionStatus.active,
    )
