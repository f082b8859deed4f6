"""Reminder Job - due-soon loan reminders and closing-window appointment reminders.

Invariants:
    - At most one reminder per (subject, threshold): the flag row is committed
      before the sender is called
    - A sender failure is logged; the flag stays, so the reminder is never retried
    - The job only reads loans and appointments; it writes reminder_notifications only
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.appointment_rules import grace_window_end, local_start
from nfcdesk.core.clock import as_utc, local_today, utc_now
from nfcdesk.core.domain_types import (
    AppointmentStatus, EntityKind, LoanStatus, ReminderSubject,
)
from nfcdesk.core.reminder_rules import (
    APPOINTMENT_THRESHOLD, appointment_reminder_due, days_remaining, loan_threshold,
)
from nfcdesk.core.repository_protocols import (
    AppointmentReminder, LoanReminder, ReminderSender,
)
from nfcdesk.models.appointment import Appointment
from nfcdesk.models.book import Book
from nfcdesk.models.loan import Loan
from nfcdesk.models.reminder_notification import ReminderNotification

logger = logging.getLogger(__name__)


@dataclass
class ReminderReport:
    loans_sent: int = 0
    appointments_sent: int = 0
    failures: int = 0


class ReminderJob:

    def __init__(
        self,
        db: AsyncSession,
        sender: ReminderSender,
        tz,
        loan_thresholds: list[int] | tuple[int, ...] = (3, 1),
        grace: timedelta = timedelta(minutes=30),
        lead: timedelta = timedelta(minutes=15),
    ):
        self.db = db
        self.sender = sender
        self.tz = tz
        self.loan_thresholds = tuple(loan_thresholds)
        self.grace = grace
        self.lead = lead

    async def _claim(self, subject: ReminderSubject, subject_id: int, threshold: str) -> bool:
        """Record the flag row. False when this reminder was already sent."""
        existing = await self.db.execute(
            select(ReminderNotification.id).where(
                ReminderNotification.subject_kind == subject.value,
                ReminderNotification.subject_id == subject_id,
                ReminderNotification.threshold == threshold,
            ),
        )
        if existing.scalar_one_or_none() is not None:
            return False
        self.db.add(ReminderNotification(
            subject_kind=subject.value,
            subject_id=subject_id,
            threshold=threshold,
        ))
        await self.db.commit()
        return True

    async def run(self, now: datetime | None = None) -> ReminderReport:
        now = now or utc_now()
        report = ReminderReport()
        await self._loan_reminders(now, report)
        await self._appointment_reminders(now, report)
        logger.info(
            "Reminders: %d loan, %d appointment, %d failed",
            report.loans_sent, report.appointments_sent, report.failures,
        )
        return report

    async def _loan_reminders(self, now: datetime, report: ReminderReport) -> None:
        today = local_today(now, self.tz)
        result = await self.db.execute(
            select(Loan).where(
                Loan.status == LoanStatus.ACTIVE.value,
                Loan.resource_kind == EntityKind.BOOK.value,
                Loan.due_at.is_not(None),
            ).order_by(Loan.id),
        )
        for loan in result.scalars().all():
            due_at = as_utc(loan.due_at)
            days_left = days_remaining(due_at, today, self.tz)
            threshold = loan_threshold(days_left, self.loan_thresholds)
            if threshold is None:
                continue
            if not await self._claim(ReminderSubject.LOAN, loan.id, threshold):
                continue
            book = await self.db.get(Book, loan.book_id)
            reminder = LoanReminder(
                loan_id=loan.id,
                borrower_name=loan.borrower.full_name,
                borrower_email=loan.borrower.email,
                resource_title=book.title,
                due_at=due_at,
                days_left=days_left,
            )
            try:
                await self.sender.send_loan_reminder(reminder)
                report.loans_sent += 1
            except Exception as e:
                report.failures += 1
                logger.error(
                    f"Loan reminder failed: {e}", extra={"loan_id": loan.id},
                )

    async def _appointment_reminders(
        self, now: datetime, report: ReminderReport,
    ) -> None:
        today = local_today(now, self.tz)
        result = await self.db.execute(
            select(Appointment).where(
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.scheduled_date == today,
            ).order_by(Appointment.scheduled_time),
        )
        for appointment in result.scalars().all():
            start = local_start(
                appointment.scheduled_date, appointment.scheduled_time, self.tz,
            )
            window_end = grace_window_end(start, self.grace)
            if not appointment_reminder_due(window_end, now, self.lead):
                continue
            if not await self._claim(
                ReminderSubject.APPOINTMENT, appointment.id, APPOINTMENT_THRESHOLD,
            ):
                continue
            reminder = AppointmentReminder(
                appointment_id=appointment.id,
                person_name=appointment.person.full_name,
                person_email=appointment.person.email,
                scheduled_date=appointment.scheduled_date,
                scheduled_time=appointment.scheduled_time,
                area=appointment.area,
                window_closes_at=window_end,
            )
            try:
                await self.sender.send_appointment_reminder(reminder)
                report.appointments_sent += 1
            except Exception as e:
                report.failures += 1
                logger.error(
                    f"Appointment reminder failed: {e}",
                    extra={"appointment_id": appointment.id},
                )
