"""Test doubles and fixed clock values shared across test packages."""

from datetime import datetime, timezone

# Monday 2026-10-19, 10:05 UTC
NOW = datetime(2026, 10, 19, 10, 5, tzinfo=timezone.utc)


class RecordingSink:
    """NotificationSink that keeps every published event."""

    def __init__(self):
        self.events: list[dict] = []

    def publish(self, event: dict) -> None:
        self.events.append(event)


class BrokenSink:
    def publish(self, event: dict) -> None:
        raise RuntimeError("subscriber went away")


class RecordingSender:
    """ReminderSender that keeps every reminder it is handed."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.loans = []
        self.appointments = []

    async def send_loan_reminder(self, reminder) -> None:
        self.loans.append(reminder)
        if self.fail:
            raise ConnectionError("smtp down")

    async def send_appointment_reminder(self, reminder) -> None:
        self.appointments.append(reminder)
        if self.fail:
            raise ConnectionError("smtp down")
