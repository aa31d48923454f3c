from __future__ import annotations
from datetime import time
from sqlalchemy import ForeignKey, Time, UniqueConstraint, CheckConstraint, Integer, Boolean, Index, true
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base


class AvailabilityWindow(Base):
    __tablename__ = "availability_windows"

    id: Mapped[int] = mapped_column(primary_key=True)
    tutor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    # 0=Sunday .. 6=Saturday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)

    start_time: Mapped[time] = mapped_column(Time(timezone=False), nullable=False)
    end_time:   Mapped[time] = mapped_column(Time(timezone=False), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day"),
        CheckConstraint("start_time < end_time", name="ck_availability_order"),
        UniqueConstraint(
            "tutor_id", "day_of_week", "start_time", "end_time",
            name="unique_availability_window"
        ),
        Index("ix_availability_tutor_day", "tutor_id", "day_of_week"),
    )
