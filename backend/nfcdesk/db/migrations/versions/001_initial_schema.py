"""Initial schema - people, books, computers, card_assignments, loans, access_events.

Revision ID: 001_initial
Revises: None
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE = sa.text("status = 'active'")


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("person_type", sa.String(30), nullable=False, server_default="external"),
        sa.Column("card_id", sa.String(64), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "books",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("author", sa.String(200), nullable=False),
        sa.Column("isbn", sa.String(20), nullable=True, unique=True),
        sa.Column("loan_days", sa.Integer, nullable=False, server_default="7"),
        sa.Column("status", sa.String(20), nullable=False, server_default="free"),
        sa.Column("card_id", sa.String(64), nullable=True, unique=True),
    )

    op.create_table(
        "computers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("operating_system", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="free"),
        sa.Column("card_id", sa.String(64), nullable=True, unique=True),
    )

    op.create_table(
        "card_assignments",
        sa.Column("card_id", sa.String(64), primary_key=True),
        sa.Column("entity_kind", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("entity_kind", "entity_id", name="uq_card_owner"),
    )

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("resource_kind", sa.String(20), nullable=False),
        sa.Column("book_id", sa.Integer, sa.ForeignKey("books.id"), nullable=True),
        sa.Column("computer_id", sa.Integer, sa.ForeignKey("computers.id"), nullable=True),
        sa.Column("borrower_id", sa.Integer, sa.ForeignKey("people.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(resource_kind = 'book' AND book_id IS NOT NULL AND computer_id IS NULL)"
            " OR (resource_kind = 'computer' AND computer_id IS NOT NULL AND book_id IS NULL)",
            name="ck_loans_single_resource",
        ),
    )
    op.create_index(
        "uq_loans_active_book", "loans", ["book_id"], unique=True,
        postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )
    op.create_index(
        "uq_loans_active_computer", "loans", ["computer_id"], unique=True,
        postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )

    op.create_table(
        "access_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("usage_context", sa.String(20), nullable=True),
        sa.Column("card_id", sa.String(64), nullable=False),
        sa.Column("person_id", sa.Integer, sa.ForeignKey("people.id", ondelete="SET NULL"), nullable=True),
        sa.Column("book_id", sa.Integer, sa.ForeignKey("books.id", ondelete="SET NULL"), nullable=True),
        sa.Column("computer_id", sa.Integer, sa.ForeignKey("computers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("loan_id", sa.Integer, sa.ForeignKey("loans.id", ondelete="SET NULL"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(CASE WHEN person_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN book_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN computer_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_access_events_single_entity",
        ),
    )
    op.create_index("ix_access_events_person", "access_events", ["person_id", "id"])
    op.create_index("ix_access_events_book", "access_events", ["book_id", "id"])
    op.create_index("ix_access_events_computer", "access_events", ["computer_id", "id"])


def downgrade() -> None:
    op.drop_table("access_events")
    op.drop_index("uq_loans_active_computer", table_name="loans")
    op.drop_index("uq_loans_active_book", table_name="loans")
    op.drop_table("loans")
    op.drop_table("card_assignments")
    op.drop_table("computers")
    op.drop_table("books")
    op.drop_table("people")
