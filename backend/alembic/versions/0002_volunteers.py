"""volunteers

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17

Adds volunteers, volunteer_work and volunteer_attendance.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- volunteers ---
    op.create_table(
        "volunteers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("comment", sa.Text, nullable=False),
        sa.Column("place", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("joined_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- volunteer_work ---
    op.create_table(
        "volunteer_work",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "volunteer_id", sa.String(36), sa.ForeignKey("volunteers.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("task_name", sa.String(255), nullable=False),
        sa.Column("task_status", sa.String(20), nullable=False, server_default="assigned"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_volunteer_work_volunteer_id", "volunteer_work", ["volunteer_id"])
    op.create_index("ix_volunteer_work_event_id", "volunteer_work", ["event_id"])

    # --- volunteer_attendance ---
    op.create_table(
        "volunteer_attendance",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "volunteer_id", sa.String(36), sa.ForeignKey("volunteers.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("volunteer_id", "event_id", name="uq_volunteer_attendance_volunteer_event"),
    )
    op.create_index("ix_volunteer_attendance_volunteer_id", "volunteer_attendance", ["volunteer_id"])
    op.create_index("ix_volunteer_attendance_event_id", "volunteer_attendance", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_volunteer_attendance_event_id", table_name="volunteer_attendance")
    op.drop_index("ix_volunteer_attendance_volunteer_id", table_name="volunteer_attendance")
    op.drop_table("volunteer_attendance")
    op.drop_index("ix_volunteer_work_event_id", table_name="volunteer_work")
    op.drop_index("ix_volunteer_work_volunteer_id", table_name="volunteer_work")
    op.drop_table("volunteer_work")
    op.drop_table("volunteers")
