"""CardAssignment ORM - the single card namespace shared by all entity kinds.

Invariants:
    - card_id is the primary key: one card, one owner, across people, books and computers
    - (entity_kind, entity_id) unique: an entity holds at most one card
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class CardAssignment(Base):
    """Card ownership row, maintained by EntityDirectory.assign_card."""
    __tablename__ = "card_assignments"
    __table_args__ = (
        UniqueConstraint("entity_kind", "entity_id", name="uq_card_owner"),
    )

    card_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    entity_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
