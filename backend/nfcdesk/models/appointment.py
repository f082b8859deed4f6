"""Appointment ORM - scheduled use of facility time by a person.

Invariants:
    - status in {scheduled, checked_in, completed, missed}; written only by AppointmentLifecycle
    - scheduled_date/scheduled_time are facility-local wall-clock values
    - checked_in_at set exactly when status becomes checked_in
"""

from datetime import date, datetime, time, timezone

from sqlalchemy import (
    String, Integer, Text, Date, Time, DateTime, ForeignKey, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nfcdesk.db.base import Base


class Appointment(Base):
    """Appointment entity."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_status_date", "status", "scheduled_date"),
        Index("ix_appointments_person_date", "person_id", "scheduled_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    topic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    assistance_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="scheduled",
    )
    checked_in_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    person: Mapped["Person"] = relationship("Person", lazy="selectin")
