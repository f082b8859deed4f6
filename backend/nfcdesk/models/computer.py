"""Computer ORM - loaner computer with a card sticker.

Invariants:
    - status in {free, loaned, maintenance}; written only by the resource guard
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class Computer(Base):
    """Computer entity."""
    __tablename__ = "computers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    operating_system: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="free",
    )
    card_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True,
    )

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}"
