"""Create scheduling tables

Revision ID: 3c1f0a7b9d21
Revises:
Create Date: 2026-10-18 10:12:44.318220
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a7b9d21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE_ENUM = "user_role"
SUBSCRIPTION_ENUM = "subscription_status"
SESSION_ENUM = "session_status"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.Enum("parent", "tutor", "admin", name=USER_ROLE_ENUM), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=False),
        sa.Column("tutor_id", sa.Integer(), nullable=True),
        sa.Column("course_id", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "paused", "cancelled", "completed", name=SUBSCRIPTION_ENUM),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_subscriptions_parent_id"), "subscriptions", ["parent_id"], unique=False)
    op.create_index(op.f("ix_subscriptions_tutor_id"), "subscriptions", ["tutor_id"], unique=False)

    op.create_table(
        "availability_windows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tutor_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(timezone=False), nullable=False),
        sa.Column("end_time", sa.Time(timezone=False), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_order"),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tutor_id", "day_of_week", "start_time", "end_time", name="unique_availability_window"
        ),
    )
    op.create_index(op.f("ix_availability_windows_tutor_id"), "availability_windows", ["tutor_id"], unique=False)
    op.create_index("ix_availability_tutor_day", "availability_windows", ["tutor_id", "day_of_week"], unique=False)

    op.create_table(
        "time_blocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tutor_id", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.CheckConstraint("start_at < end_at", name="ck_time_block_order"),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tutor_id", "start_at", "end_at", name="unique_time_block_exact"),
    )
    op.create_index(op.f("ix_time_blocks_tutor_id"), "time_blocks", ["tutor_id"], unique=False)
    op.create_index("ix_time_block_tutor_start", "time_blocks", ["tutor_id", "start_at"], unique=False)

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tutor_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=False),
        sa.Column("subscription_id", sa.Integer(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum("scheduled", "completed", "cancelled", "no_show", name=SESSION_ENUM),
            nullable=False,
        ),
        sa.Column("management_token", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("duration_minutes > 0", name="ck_sessions_duration"),
        sa.ForeignKeyConstraint(["tutor_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("management_token"),
    )
    op.create_index(op.f("ix_sessions_tutor_id"), "sessions", ["tutor_id"], unique=False)
    op.create_index(op.f("ix_sessions_parent_id"), "sessions", ["parent_id"], unique=False)
    op.create_index(op.f("ix_sessions_subscription_id"), "sessions", ["subscription_id"], unique=False)
    op.create_index("ix_sessions_tutor_start", "sessions", ["tutor_id", "scheduled_at"], unique=False)
    op.create_index(
        "ix_sessions_tutor_status_start", "sessions", ["tutor_id", "status", "scheduled_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_sessions_tutor_status_start", table_name="sessions")
    op.drop_index("ix_sessions_tutor_start", table_name="sessions")
    op.drop_index(op.f("ix_sessions_subscription_id"), table_name="sessions")
    op.drop_index(op.f("ix_sessions_parent_id"), table_name="sessions")
    op.drop_index(op.f("ix_sessions_tutor_id"), table_name="sessions")
    op.drop_table("sessions")

    op.drop_index("ix_time_block_tutor_start", table_name="time_blocks")
    op.drop_index(op.f("ix_time_blocks_tutor_id"), table_name="time_blocks")
    op.drop_table("time_blocks")

    op.drop_index("ix_availability_tutor_day", table_name="availability_windows")
    op.drop_index(op.f("ix_availability_windows_tutor_id"), table_name="availability_windows")
    op.drop_table("availability_windows")

    op.drop_index(op.f("ix_subscriptions_tutor_id"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_parent_id"), table_name="subscriptions")
    op.drop_table("subscriptions")

    op.drop_table("users")

    bind = op.get_bind()
    for name in (SESSION_ENUM, SUBSCRIPTION_ENUM, USER_ROLE_ENUM):
        sa.Enum(name=name).drop(bind, checkfirst=True)
