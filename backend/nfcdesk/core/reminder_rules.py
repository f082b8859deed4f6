"""Reminder Rules - which loans and appointments are due a reminder right now.

Invariants:
    - A loan matches at most one threshold per run (days remaining is a single integer)
    - An appointment reminder is due only while its grace window is still open
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo

APPOINTMENT_THRESHOLD = "grace_window"


def days_remaining(due_at: datetime, today: date, tz: tzinfo) -> int:
    """Whole facility-local days between today and the due date."""
    return (due_at.astimezone(tz).date() - today).days


def loan_threshold(days_left: int, thresholds: Iterable[int]) -> str | None:
    """Threshold key ("3d", "1d", ...) matched by days_left, if any."""
    if days_left in set(thresholds):
        return f"{days_left}d"
    return None


def appointment_reminder_due(
    window_end: datetime, now: datetime, lead: timedelta,
) -> bool:
    remaining = window_end - now
    return timedelta(0) < remaining <= lead
