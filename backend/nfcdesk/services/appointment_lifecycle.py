"""Appointment Lifecycle - scheduling, tap check-in and the periodic sweep.

Invariants:
    - Every status write is UPDATE ... WHERE id = ? AND status = ? (compare-and-set);
      a lost race leaves the row untouched and is counted as skipped
    - sweep() takes one now snapshot; "today" is the facility-local date of it
    - Running sweep() twice with the same now changes nothing the second time
    - Only this module writes Appointment.status

Design Decisions:
    - Transition decisions live in core/appointment_rules.py; this module loads rows,
      applies the table, and commits
    - Each public method is its own transaction: a failed check-in never touches
      the tap that triggered it
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.appointment_rules import (
    check_transition, local_start, pick_check_in, sweep_target,
)
from nfcdesk.core.clock import as_utc, local_today, utc_now
from nfcdesk.core.domain_types import AppointmentStatus
from nfcdesk.core.errors import ResourceNotFoundError
from nfcdesk.models.appointment import Appointment
from nfcdesk.models.person import Person

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    now: datetime
    completed: list[int] = field(default_factory=list)
    missed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.completed) + len(self.missed)


class AppointmentLifecycle:

    def __init__(
        self,
        db: AsyncSession,
        tz,
        grace: timedelta = timedelta(minutes=30),
        completion_after: timedelta = timedelta(hours=2),
    ):
        self.db = db
        self.tz = tz
        self.grace = grace
        self.completion_after = completion_after

    async def _transition(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        target: AppointmentStatus,
        **values,
    ) -> bool:
        check_transition(expected, target)
        result = await self.db.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status == expected.value,
            )
            .values(status=target.value, **values),
        )
        return result.rowcount == 1

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        now = now or utc_now()
        today = local_today(now, self.tz)
        report = SweepReport(now=now)

        result = await self.db.execute(
            select(Appointment).where(
                or_(
                    Appointment.status == AppointmentStatus.CHECKED_IN.value,
                    (Appointment.status == AppointmentStatus.SCHEDULED.value)
                    & (Appointment.scheduled_date < today),
                ),
            ).order_by(Appointment.id),
        )
        for appointment in result.scalars().all():
            status = AppointmentStatus(appointment.status)
            checked_in_at = as_utc(appointment.checked_in_at) or local_start(
                appointment.scheduled_date, appointment.scheduled_time, self.tz,
            )
            target = sweep_target(
                status, appointment.scheduled_date, checked_in_at,
                today, now, self.completion_after,
            )
            if target is None:
                continue
            if not await self._transition(
                appointment.id, status, target, closed_at=now,
            ):
                report.skipped.append(appointment.id)
                continue
            if target == AppointmentStatus.MISSED:
                report.missed.append(appointment.id)
            else:
                report.completed.append(appointment.id)

        await self.db.commit()
        logger.info(
            "Appointment sweep: %d completed, %d missed, %d skipped",
            len(report.completed), len(report.missed), len(report.skipped),
        )
        return report

    async def check_in(
        self, person_id: int, now: datetime | None = None,
    ) -> Appointment | None:
        """Check in the person's scheduled appointment whose start is closest to now."""
        now = now or utc_now()
        today = local_today(now, self.tz)
        result = await self.db.execute(
            select(Appointment).where(
                Appointment.person_id == person_id,
                Appointment.status == AppointmentStatus.SCHEDULED.value,
                Appointment.scheduled_date == today,
            ),
        )
        candidates = [
            (a.id, local_start(a.scheduled_date, a.scheduled_time, self.tz))
            for a in result.scalars().all()
        ]
        appointment_id = pick_check_in(candidates, now, self.grace)
        if appointment_id is None:
            return None
        if not await self._transition(
            appointment_id,
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.CHECKED_IN,
            checked_in_at=now,
        ):
            await self.db.rollback()
            return None
        await self.db.commit()
        logger.info(
            "Appointment checked in",
            extra={"appointment_id": appointment_id, "entity_id": person_id},
        )
        return await self.db.get(Appointment, appointment_id, populate_existing=True)

    async def schedule(
        self,
        person_id: int,
        scheduled_date: date,
        scheduled_time: time,
        area: str | None = None,
        topic: str | None = None,
        assistance_type: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        if await self.db.get(Person, person_id) is None:
            raise ResourceNotFoundError("Person", str(person_id))
        appointment = Appointment(
            person_id=person_id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            area=area,
            topic=topic,
            assistance_type=assistance_type,
            notes=notes,
            status=AppointmentStatus.SCHEDULED.value,
        )
        self.db.add(appointment)
        await self.db.commit()
        await self.db.refresh(appointment)
        return appointment

    async def list_for_date(self, day: date) -> list[Appointment]:
        result = await self.db.execute(
            select(Appointment)
            .where(Appointment.scheduled_date == day)
            .order_by(Appointment.scheduled_time, Appointment.id),
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Appointment]:
        result = await self.db.execute(
            select(Appointment).order_by(
                Appointment.scheduled_date.desc(),
                Appointment.scheduled_time.desc(),
            ),
        )
        return list(result.scalars().all())
