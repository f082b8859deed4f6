"""Reminder notifications - sent-flags for loan and appointment reminders.

Revision ID: 003_reminder_notifications
Revises: 002_appointments
Create Date: 2026-10-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003_reminder_notifications"
down_revision: Union[str, None] = "002_appointments"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reminder_notifications",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("subject_kind", sa.String(20), nullable=False),
        sa.Column("subject_id", sa.Integer, nullable=False),
        sa.Column("threshold", sa.String(20), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "subject_kind", "subject_id", "threshold", name="uq_reminder_once",
        ),
    )


def downgrade() -> None:
    op.drop_table("reminder_notifications")
