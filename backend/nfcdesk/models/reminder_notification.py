"""ReminderNotification ORM - notification-already-sent flag.

Invariants:
    - (subject_kind, subject_id, threshold) unique: at most one reminder per threshold
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nfcdesk.db.base import Base


class ReminderNotification(Base):
    __tablename__ = "reminder_notifications"
    __table_args__ = (
        UniqueConstraint(
            "subject_kind", "subject_id", "threshold",
            name="uq_reminder_once",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    threshold: Mapped[str] = mapped_column(String(20), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
