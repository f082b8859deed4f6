"""Loan operator and card history - desk staff on loans, per-card event index.

Revision ID: 004_loan_operator
Revises: 003_reminder_notifications
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "004_loan_operator"
down_revision: Union[str, None] = "003_reminder_notifications"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("loans", sa.Column("operator", sa.String(120), nullable=True))
    op.create_index("ix_access_events_card", "access_events", ["card_id", "id"])


def downgrade() -> None:
    op.drop_index("ix_access_events_card", table_name="access_events")
    with op.batch_alter_table("loans") as batch_op:
        batch_op.drop_column("operator")
