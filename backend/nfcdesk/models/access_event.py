"""AccessEvent ORM - append-only ledger of card taps.

Invariants:
    - id is the monotonic sequence; "most recent" always means highest id
    - At most one of person_id / book_id / computer_id is set (none for unrecognized cards)
    - Rows are never updated; deleted only by the bulk purge

Design Decisions:
    - One nullable FK column per entity kind: per-entity history queries hit a plain index
    - loan_id links the tap that opened or closed a loan, null for presence-only taps
"""

from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class AccessEvent(Base):
    """Ledger entry."""
    __tablename__ = "access_events"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN person_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN book_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN computer_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_access_events_single_entity",
        ),
        Index("ix_access_events_person", "person_id", "id"),
        Index("ix_access_events_book", "book_id", "id"),
        Index("ix_access_events_computer", "computer_id", "id"),
        Index("ix_access_events_card", "card_id", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    usage_context: Mapped[str | None] = mapped_column(String(20), nullable=True)
    card_id: Mapped[str] = mapped_column(String(64), nullable=False)
    person_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("people.id", ondelete="SET NULL"), nullable=True,
    )
    book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("books.id", ondelete="SET NULL"), nullable=True,
    )
    computer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("computers.id", ondelete="SET NULL"), nullable=True,
    )
    loan_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("loans.id", ondelete="SET NULL"), nullable=True,
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def entity_kind(self) -> str | None:
        if self.person_id is not None:
            return "person"
        if self.book_id is not None:
            return "book"
        if self.computer_id is not None:
            return "computer"
        return None

    @property
    def entity_id(self) -> int | None:
        return self.person_id or self.book_id or self.computer_id
