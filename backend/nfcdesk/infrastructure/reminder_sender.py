"""Logging Reminder Sender - default ReminderSender that records reminders in the log.

Invariants:
    - Never touches the database; the reminder job owns the sent-flags

Design Decisions:
    - Mail delivery is an external collaborator; deployments inject their own sender
"""

import logging

from nfcdesk.core.repository_protocols import AppointmentReminder, LoanReminder

logger = logging.getLogger(__name__)


class LoggingReminderSender:
    """ReminderSender that writes one structured log line per reminder."""

    async def send_loan_reminder(self, reminder: LoanReminder) -> None:
        plural = "" if reminder.days_left == 1 else "s"
        logger.info(
            "Loan reminder to %s <%s>: return '%s' within %d day%s",
            reminder.borrower_name, reminder.borrower_email,
            reminder.resource_title, reminder.days_left, plural,
            extra={"loan_id": reminder.loan_id},
        )

    async def send_appointment_reminder(self, reminder: AppointmentReminder) -> None:
        logger.info(
            "Appointment reminder to %s <%s>: check in before %s",
            reminder.person_name, reminder.person_email,
            reminder.window_closes_at.isoformat(),
            extra={"appointment_id": reminder.appointment_id},
        )
