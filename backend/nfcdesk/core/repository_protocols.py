"""Boundary Protocols - contracts between the engine and its outbound collaborators.

Invariants:
    - Core NEVER imports from infrastructure - implementations are injected
    - NotificationSink.publish is fire-and-forget: implementations must not block on clients
    - ReminderSender receives fully-resolved payloads; it never queries the database

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Payloads are frozen dataclasses so a sender cannot mutate engine state
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Protocol


@dataclass(frozen=True)
class LoanReminder:
    loan_id: int
    borrower_name: str
    borrower_email: str | None
    resource_title: str
    due_at: datetime
    days_left: int


@dataclass(frozen=True)
class AppointmentReminder:
    appointment_id: int
    person_name: str
    person_email: str | None
    scheduled_date: date
    scheduled_time: time
    area: str | None
    window_closes_at: datetime


class NotificationSink(Protocol):
    """Receives every committed access event (SSE/WebSocket broadcaster)."""
    def publish(self, event: dict) -> None: ...


class ReminderSender(Protocol):
    """Hands reminders to the mail collaborator."""
    async def send_loan_reminder(self, reminder: LoanReminder) -> None: ...
    async def send_appointment_reminder(self, reminder: AppointmentReminder) -> None: ...
