"""Loan ORM - reservation of a book or computer by a person.

Invariants:
    - Exactly one of book_id / computer_id is set, matching resource_kind
    - At most one active loan per resource (partial unique indexes back the guard's lock)
    - active -> closed exactly once; ended_at set on close

Design Decisions:
    - due_at null for computers (same-day desk loans) unless the desk sets a term,
      start + loan_days for books (per-loan override allowed)
    - operator is the desk staff member for desk loans, null for tap loans
"""

from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, CheckConstraint, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nfcdesk.db.base import Base


class Loan(Base):
    """Loan entity."""
    __tablename__ = "loans"
    __table_args__ = (
        CheckConstraint(
            "(resource_kind = 'book' AND book_id IS NOT NULL AND computer_id IS NULL)"
            " OR (resource_kind = 'computer' AND computer_id IS NOT NULL AND book_id IS NULL)",
            name="ck_loans_single_resource",
        ),
        Index(
            "uq_loans_active_book", "book_id", unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index(
            "uq_loans_active_computer", "computer_id", unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    resource_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("books.id"), nullable=True,
    )
    computer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("computers.id"), nullable=True,
    )
    borrower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("people.id"), nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active",
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    due_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    operator: Mapped[str | None] = mapped_column(String(120), nullable=True)

    borrower: Mapped["Person"] = relationship("Person", lazy="selectin")

    @property
    def resource_id(self) -> int:
        return self.book_id if self.resource_kind == "book" else self.computer_id
