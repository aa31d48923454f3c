from __future__ import annotations
from datetime import datetime, timedelta
from enum import Enum
from sqlalchemy import DateTime, Integer, String, Text, ForeignKey, Index, CheckConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from core.clock import aware
from core.database import Base


class SessionStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


TERMINAL_STATUSES = frozenset({SessionStatus.completed, SessionStatus.cancelled, SessionStatus.no_show})


class TutorSession(Base):
    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(primary_key=True)

    tutor_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    parent_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    subscription_id: Mapped[int] = mapped_column(
        ForeignKey("subscriptions.id", ondelete="CASCADE"), index=True
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    # always scheduled_at + duration; stored so overlap queries stay index-backed
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[SessionStatus] = mapped_column(
        SAEnum(SessionStatus, name="session_status"), nullable=False, default=SessionStatus.scheduled
    )
    management_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_sessions_duration"),
        Index("ix_sessions_tutor_start", "tutor_id", "scheduled_at"),
        Index("ix_sessions_tutor_status_start", "tutor_id", "status", "scheduled_at"),
    )

    @property
    def start(self) -> datetime:
        return aware(self.scheduled_at)

    @property
    def end(self) -> datetime:
        return aware(self.ends_at)

    def set_schedule(self, start: datetime, duration_minutes: int) -> None:
        self.scheduled_at = aware(start)
        self.duration_minutes = duration_minutes
        self.ends_at = self.scheduled_at + timedelta(minutes=duration_minutes)
