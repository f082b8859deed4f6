"""Book ORM - loanable book copy with a card sticker.

Invariants:
    - status in {free, loaned, maintenance}; written only by the resource guard
    - loan_days sets due_at for tap and desk loans (default 7)
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class Book(Base):
    """Book entity."""
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    author: Mapped[str] = mapped_column(String(200), nullable=False)
    isbn: Mapped[str | None] = mapped_column(
        String(20), unique=True, nullable=True,
    )
    loan_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="free",
    )
    card_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True,
    )
