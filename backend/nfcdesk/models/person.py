"""Person ORM - facility users identified by their card.

Invariants:
    - card_id unique when present (cross-kind uniqueness lives in card_assignments)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class Person(Base):
    """Person entity - student, faculty, staff or visitor."""
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    person_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="external",
    )
    card_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
