"""Appointments - scheduled facility time with check-in lifecycle.

Revision ID: 002_appointments
Revises: 001_initial
Create Date: 2026-10-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_appointments"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("person_id", sa.Integer, sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False),
        sa.Column("scheduled_date", sa.Date, nullable=False),
        sa.Column("scheduled_time", sa.Time, nullable=False),
        sa.Column("area", sa.String(100), nullable=True),
        sa.Column("topic", sa.String(200), nullable=True),
        sa.Column("assistance_type", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_appointments_status_date", "appointments", ["status", "scheduled_date"],
    )
    op.create_index(
        "ix_appointments_person_date", "appointments", ["person_id", "scheduled_date"],
    )


def downgrade() -> None:
    op.drop_table("appointments")
