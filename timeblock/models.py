from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, String, ForeignKey, Index, UniqueConstraint, CheckConstraint
from core.database import Base


class TimeBlock(Base):
    __tablename__ = "time_blocks"

    id: Mapped[int] = mapped_column(primary_key=True)
    tutor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason:   Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_time_block_order"),
        Index("ix_time_block_tutor_start", "tutor_id", "start_at"),
        UniqueConstraint("tutor_id", "start_at", "end_at", name="unique_time_block_exact"),
    )
