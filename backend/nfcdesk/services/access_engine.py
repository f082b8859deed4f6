"""Access Engine - composition root: owns the lock registry and wires every component.

Invariants:
    - No operation runs before ready() has prepared the schema and passed a health check
    - Every operation runs in its own session and is bounded by operation_timeout_seconds
    - A tap never reports failure after its event committed: submit_tap's timeout
      ends at the commit, the post-commit check-in has a separate bound
    - One KeyedLocks registry per process: ledger keys ("ledger", kind, id) and guard
      keys ("loan", kind, id) share it, ledger first

Design Decisions:
    - Components are built per unit of work around the session (cheap objects, no
      shared mutable state besides the locks)
    - Database handle passed in explicitly; tests hand it a manager over a temporary SQLite file
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time, timedelta
from typing import TypeVar

import pytz

from nfcdesk.config import Settings
from nfcdesk.core.access_rules import normalize_card_id
from nfcdesk.core.domain_types import (
    EntityKind, EntityRef, ResourceRef, make_ref,
)
from nfcdesk.core.errors import (
    DatabaseError, EngineNotReadyError, InvalidInputError, OperationTimeoutError,
)
from nfcdesk.core.repository_protocols import NotificationSink, ReminderSender
from nfcdesk.infrastructure.database import DatabaseSessionManager
from nfcdesk.infrastructure.keyed_locks import KeyedLocks
from nfcdesk.infrastructure.reminder_sender import LoggingReminderSender
from nfcdesk.models.access_event import AccessEvent
from nfcdesk.models.appointment import Appointment
from nfcdesk.models.loan import Loan
from nfcdesk.models.person import Person
from nfcdesk.services.access_ledger import AccessLedger
from nfcdesk.services.appointment_lifecycle import AppointmentLifecycle, SweepReport
from nfcdesk.services.entity_directory import EntityDirectory
from nfcdesk.services.reminders import ReminderJob, ReminderReport
from nfcdesk.services.resource_guard import ActiveLoanView, ResourceGuard
from nfcdesk.services.tap_dispatcher import TapDispatcher, TapOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resource_ref(kind: str, resource_id: int) -> ResourceRef:
    """Book/computer reference from request values."""
    try:
        entity_kind = EntityKind(kind)
    except ValueError:
        raise InvalidInputError(f"Unknown resource kind '{kind}'", "resource_kind")
    if entity_kind == EntityKind.PERSON:
        raise InvalidInputError("People cannot be loaned", "resource_kind")
    return make_ref(entity_kind, resource_id)


def entity_ref(kind: str, entity_id: int) -> EntityRef:
    try:
        return make_ref(EntityKind(kind), entity_id)
    except ValueError:
        raise InvalidInputError(f"Unknown entity kind '{kind}'", "entity_kind")


class AccessEngine:
    """Entry point for taps, loans, appointments and reminders."""

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        settings: Settings,
        sink: NotificationSink | None = None,
        sender: ReminderSender | None = None,
    ):
        self.db_manager = db_manager
        self.settings = settings
        self.sink = sink
        self.sender = sender or LoggingReminderSender()
        self.locks = KeyedLocks()
        self.tz = pytz.timezone(settings.facility_timezone)
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ready(self) -> None:
        """Prepare the schema and verify connectivity. Must be awaited before use."""
        await self.db_manager.prepare_schema(self.settings.schema_strategy)
        if not await self.db_manager.health_check():
            raise DatabaseError("Health check failed", "connect")
        self._ready = True
        logger.info("Access engine ready")

    async def _run(self, operation: str, work: Callable[[], Awaitable[T]]) -> T:
        if not self._ready:
            raise EngineNotReadyError()
        timeout = self.settings.operation_timeout_seconds
        try:
            return await asyncio.wait_for(work(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Operation %s timed out after %ss", operation, timeout,
                extra={"error_code": "OPERATION_TIMEOUT"},
            )
            raise OperationTimeoutError(operation, timeout)

    def _lifecycle(self, db) -> AppointmentLifecycle:
        return AppointmentLifecycle(
            db,
            self.tz,
            grace=timedelta(minutes=self.settings.checkin_grace_minutes),
            completion_after=timedelta(hours=self.settings.checkin_completion_hours),
        )

    # ─── Taps ────────────────────────────────────────────────────

    async def submit_tap(
        self,
        card_id: str | None,
        borrower_id: int | None = None,
        now: datetime | None = None,
    ) -> TapOutcome:
        timeout = self.settings.operation_timeout_seconds

        async def work() -> tuple[TapDispatcher, TapOutcome]:
            async with self.db_manager.session() as db:
                dispatcher = TapDispatcher(
                    db, self.locks, sink=self.sink,
                    check_in=self._check_in, check_in_timeout=timeout,
                )
                return dispatcher, await dispatcher.record(card_id, borrower_id, now)

        # _run bounds the work up to the commit; follow-ups carry their own bound
        dispatcher, outcome = await self._run("submit_tap", work)
        await dispatcher.follow_up(outcome)
        return outcome

    async def _check_in(self, person_id: int, now: datetime) -> int | None:
        async with self.db_manager.session() as db:
            appointment = await self._lifecycle(db).check_in(person_id, now)
            return appointment.id if appointment is not None else None

    async def latest_card_id(self) -> str | None:
        async def work():
            async with self.db_manager.session() as db:
                return await AccessLedger(db).latest_card_id()
        return await self._run("latest_card_id", work)

    async def recent_events(
        self, limit: int = 50, card_id: str | None = None,
    ) -> list[AccessEvent]:
        card = normalize_card_id(card_id) if card_id is not None else None

        async def work():
            async with self.db_manager.session() as db:
                return await AccessLedger(db).recent(limit, card)
        return await self._run("recent_events", work)

    async def people_inside(self) -> list[Person]:
        async def work():
            async with self.db_manager.session() as db:
                return await AccessLedger(db).people_inside()
        return await self._run("people_inside", work)

    async def purge_events(self) -> int:
        async def work():
            async with self.db_manager.session() as db:
                deleted = await AccessLedger(db).purge()
                await db.commit()
                return deleted
        return await self._run("purge_events", work)

    # ─── Cards ───────────────────────────────────────────────────

    async def assign_card(self, card_id: str, kind: str, entity_id: int) -> EntityRef:
        card = normalize_card_id(card_id)
        ref = entity_ref(kind, entity_id)

        async def work():
            async with self.db_manager.session() as db:
                await EntityDirectory(db).assign_card(card, ref)
                await db.commit()
                return ref
        return await self._run("assign_card", work)

    async def unassign_card(self, card_id: str) -> EntityRef | None:
        card = normalize_card_id(card_id)

        async def work():
            async with self.db_manager.session() as db:
                owner = await EntityDirectory(db).unassign_card(card)
                await db.commit()
                return owner
        return await self._run("unassign_card", work)

    # ─── Loans ───────────────────────────────────────────────────

    async def reserve(
        self, kind: str, resource_id: int, borrower_id: int,
        now: datetime | None = None,
        loan_days: int | None = None,
        operator: str | None = None,
    ) -> Loan:
        ref = resource_ref(kind, resource_id)

        async def work():
            async with self.db_manager.session() as db:
                guard = ResourceGuard(db, self.locks)
                async with guard.lock(ref):
                    loan = await guard.reserve(
                        ref, borrower_id, now,
                        loan_days=loan_days, operator=operator,
                    )
                    await db.commit()
                    return loan
        return await self._run("reserve", work)

    async def release(
        self, kind: str, resource_id: int, now: datetime | None = None,
    ) -> Loan:
        ref = resource_ref(kind, resource_id)

        async def work():
            async with self.db_manager.session() as db:
                guard = ResourceGuard(db, self.locks)
                async with guard.lock(ref):
                    loan = await guard.release(ref, now)
                    await db.commit()
                    return loan
        return await self._run("release", work)

    async def active_loans(self, now: datetime | None = None) -> list[ActiveLoanView]:
        async def work():
            async with self.db_manager.session() as db:
                return await ResourceGuard(db, self.locks).active_loans(
                    now or datetime.now(pytz.utc), self.tz,
                )
        return await self._run("active_loans", work)

    # ─── Appointments ────────────────────────────────────────────

    async def schedule_appointment(
        self,
        person_id: int,
        scheduled_date: date,
        scheduled_time: time,
        area: str | None = None,
        topic: str | None = None,
        assistance_type: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        async def work():
            async with self.db_manager.session() as db:
                return await self._lifecycle(db).schedule(
                    person_id, scheduled_date, scheduled_time,
                    area=area, topic=topic,
                    assistance_type=assistance_type, notes=notes,
                )
        return await self._run("schedule_appointment", work)

    async def appointments(self, day: date | None = None) -> list[Appointment]:
        async def work():
            async with self.db_manager.session() as db:
                lifecycle = self._lifecycle(db)
                if day is None:
                    return await lifecycle.list_all()
                return await lifecycle.list_for_date(day)
        return await self._run("appointments", work)

    async def sweep_appointments(self, now: datetime | None = None) -> SweepReport:
        async def work():
            async with self.db_manager.session() as db:
                return await self._lifecycle(db).sweep(now)
        return await self._run("sweep_appointments", work)

    async def send_reminders(self, now: datetime | None = None) -> ReminderReport:
        async def work():
            async with self.db_manager.session() as db:
                job = ReminderJob(
                    db,
                    self.sender,
                    self.tz,
                    loan_thresholds=self.settings.loan_reminder_days,
                    grace=timedelta(minutes=self.settings.checkin_grace_minutes),
                    lead=timedelta(
                        minutes=self.settings.appointment_reminder_lead_minutes,
                    ),
                )
                return await job.run(now)
        return await self._run("send_reminders", work)
