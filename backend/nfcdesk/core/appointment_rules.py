"""Appointment Rules - lifecycle transition table, sweep targets, check-in window.

Invariants:
    - scheduled -> checked_in | missed; checked_in -> completed; completed and missed are terminal
    - sweep_target is a function of (row, now): same inputs give the same answer,
      and a terminal status never yields a target (sweep idempotence)
    - "today" is always the facility-local date of the sweep's single now snapshot

Design Decisions:
    - Pure functions over plain values: the lifecycle service loads rows, core decides
    - Timezone-aware datetimes throughout; local starts built with pytz localize()
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from nfcdesk.core.domain_types import AppointmentStatus
from nfcdesk.core.errors import InvalidTransitionError

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CHECKED_IN, AppointmentStatus.MISSED,
    }),
    AppointmentStatus.CHECKED_IN: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.MISSED: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not TRANSITIONS[status]


def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is in the table."""
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)


def local_start(scheduled_date: date, scheduled_time: time, tz) -> datetime:
    """Aware datetime of an appointment start in the facility timezone."""
    naive = datetime.combine(scheduled_date, scheduled_time)
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def sweep_target(
    status: AppointmentStatus,
    scheduled_date: date,
    checked_in_at: datetime | None,
    today: date,
    now: datetime,
    completion_after: timedelta,
) -> AppointmentStatus | None:
    """Status the sweep should move this appointment to, or None to leave it.

    checked_in_at is the moment the check-in was recorded; callers without one
    (rows checked in before the column existed) pass the scheduled start.
    """
    if status == AppointmentStatus.SCHEDULED:
        if scheduled_date < today:
            return AppointmentStatus.MISSED
        return None
    if status == AppointmentStatus.CHECKED_IN:
        if scheduled_date < today:
            return AppointmentStatus.COMPLETED
        if checked_in_at is not None and now - checked_in_at >= completion_after:
            return AppointmentStatus.COMPLETED
    return None


def in_check_in_window(start: datetime, now: datetime, grace: timedelta) -> bool:
    return start - grace <= now <= start + grace


def grace_window_end(start: datetime, grace: timedelta) -> datetime:
    return start + grace


def pick_check_in(
    candidates: Iterable[tuple[int, datetime]], now: datetime, grace: timedelta,
) -> int | None:
    """Id of the appointment whose start is closest to now inside the grace window."""
    eligible = [
        (abs(now - start), start, appointment_id)
        for appointment_id, start in candidates
        if in_check_in_window(start, now, grace)
    ]
    if not eligible:
        return None
    return min(eligible)[2]
