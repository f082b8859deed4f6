"""Tap Dispatcher - turns one card tap into one access event plus its side effects.

Invariants:
    - Blank card ids are rejected before any read
    - Exactly one AccessEvent per accepted tap; rejected taps write nothing
    - Unknown cards log UNRECOGNIZED with no entity and no side effect
    - Event and loan change commit in one transaction, while the ledger lock (and for
      resources the guard lock, always taken second) is held
    - Notification and appointment check-in run only after the commit and never
      undo it; record() returns once the tap is durable, follow_up() never raises
    - A check-in slower than check_in_timeout becomes a CHECK_IN_TIMEOUT warning

Design Decisions:
    - match on the tagged EntityRef: adding an entity kind fails loudly here
    - Exit with no active loan is a warning, not a rejection: the physical item
      is already back on the desk
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.access_rules import next_action, normalize_card_id
from nfcdesk.core.clock import as_utc, utc_now
from nfcdesk.core.domain_types import (
    AccessAction, BookRef, ComputerRef, EntityRef, PersonRef,
)
from nfcdesk.core.errors import NoActiveLoanError
from nfcdesk.core.repository_protocols import NotificationSink
from nfcdesk.infrastructure.keyed_locks import KeyedLocks
from nfcdesk.models.access_event import AccessEvent
from nfcdesk.models.loan import Loan
from nfcdesk.services.access_ledger import AccessLedger
from nfcdesk.services.entity_directory import EntityDirectory
from nfcdesk.services.resource_guard import ResourceGuard

logger = logging.getLogger(__name__)

CHECK_IN_TIMEOUT = "CHECK_IN_TIMEOUT"

CheckIn =Callable[[int, datetime], Awaitable[int | None]]


@dataclass
class TapOutcome:
    event: AccessEvent
    ref: EntityRef | None = None
    loan: Loan | None = None
    warnings: list[str] = field(default_factory=list)
    appointment_id: int | None = None


def event_payload(event: AccessEvent) -> dict:
    """Wire form of a committed access event (SSE feed, REST responses)."""
    return {
        "id": event.id,
        "action": event.action,
        "card_id": event.card_id,
        "entity_kind": event.entity_kind,
        "entity_id": event.entity_id,
        "usage_context": event.usage_context,
        "loan_id": event.loan_id,
        "occurred_at": as_utc(event.occurred_at).isoformat(),
    }


class TapDispatcher:
    """Routes a tap to the ledger, the guard and the appointment check-in."""

    def __init__(
        self,
        db: AsyncSession,
        locks: KeyedLocks,
        sink: NotificationSink | None = None,
        check_in: CheckIn | None = None,
        check_in_timeout: float | None = None,
    ):
        self.db = db
        self.locks = locks
        self.sink = sink
        self.check_in = check_in
        self.check_in_timeout = check_in_timeout
        self.directory = EntityDirectory(db)
        self.ledger = AccessLedger(db)
        self.guard = ResourceGuard(db, locks)

    async def handle_tap(
        self,
        card_id: str | None,
        borrower_id: int | None = None,
        now: datetime | None = None,
    ) -> TapOutcome:
        outcome = await self.record(card_id, borrower_id, now)
        await self.follow_up(outcome)
        return outcome

    async def record(
        self,
        card_id: str | None,
        borrower_id: int | None = None,
        now: datetime | None = None,
    ) -> TapOutcome:
        """Toggle, apply the loan change and commit. Returns once the event is durable."""
        card = normalize_card_id(card_id)
        now = now or utc_now()
        ref = await self.directory.resolve(card)

        if ref is None:
            event = await self.ledger.append(
                card, AccessAction.UNRECOGNIZED, occurred_at=now,
            )
            await self.db.commit()
            logger.info(
                "Unrecognized card",
                extra={"card_id": card, "action": event.action},
            )
            return TapOutcome(event=event)

        async with self.locks.hold(("ledger", ref.kind.value, ref.id)):
            match ref:
                case PersonRef():
                    return await self._person_tap(card, ref, now)
                case BookRef() | ComputerRef():
                    async with self.guard.lock(ref):
                        return await self._resource_tap(card, ref, borrower_id, now)

    async def follow_up(self, outcome: TapOutcome) -> None:
        """Post-commit side effects. Never raises: the tap is already recorded."""
        self._publish(outcome.event)
        if (
            isinstance(outcome.ref, PersonRef)
            and outcome.event.action == AccessAction.ENTRY.value
            and self.check_in is not None
        ):
            outcome.appointment_id = await self._check_in(outcome)

    async def _person_tap(
        self, card: str, ref: PersonRef, now: datetime,
    ) -> TapOutcome:
        action = next_action(await self.ledger.last_action(ref))
        event = await self.ledger.append(card, action, ref, occurred_at=now)
        await self.db.commit()
        logger.info(
            "Person %s", action.value,
            extra={"card_id": card, "entity_kind": "person", "entity_id": ref.id},
        )
        return TapOutcome(event=event, ref=ref)

    async def _resource_tap(
        self,
        card: str,
        ref: BookRef | ComputerRef,
        borrower_id: int | None,
        now: datetime,
    ) -> TapOutcome:
        action = next_action(await self.ledger.last_action(ref))
        loan = None
        warnings: list[str] = []

        if action == AccessAction.ENTRY and borrower_id is not None:
            # ResourceUnavailable propagates: nothing has been written yet
            loan = await self.guard.reserve(ref, borrower_id, now)
        elif action == AccessAction.EXIT:
            try:
                loan = await self.guard.release(ref, now)
            except NoActiveLoanError as e:
                logger.warning(
                    e.message,
                    extra={
                        "error_code": e.code, "card_id": card,
                        "entity_kind": ref.kind.value, "entity_id": ref.id,
                    },
                )
                warnings.append(e.code)

        event = await self.ledger.append(
            card, action, ref,
            loan_id=loan.id if loan is not None else None,
            occurred_at=now,
        )
        await self.db.commit()
        logger.info(
            "%s %s", ref.kind.value.capitalize(), action.value,
            extra={
                "card_id": card, "entity_kind": ref.kind.value,
                "entity_id": ref.id, "loan_id": event.loan_id,
            },
        )
        return TapOutcome(event=event, ref=ref, loan=loan, warnings=warnings)

    def _publish(self, event: AccessEvent) -> None:
        if self.sink is None:
            return
        try:
            self.sink.publish({"type": "access_event", "data": event_payload(event)})
        except Exception as e:
            logger.warning(f"Notification sink failed: {e}")

    async def _check_in(self, outcome: TapOutcome) -> int | None:
        ref = outcome.ref
        now = as_utc(outcome.event.occurred_at)
        try:
            return await asyncio.wait_for(
                self.check_in(ref.id, now), timeout=self.check_in_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Appointment check-in timed out after %ss", self.check_in_timeout,
                extra={
                    "error_code": CHECK_IN_TIMEOUT,
                    "entity_kind": "person", "entity_id": ref.id,
                },
            )
            outcome.warnings.append(CHECK_IN_TIMEOUT)
            return None
        except Exception as e:
            logger.error(
                f"Appointment check-in failed: {e}",
                extra={"entity_kind": "person", "entity_id": ref.id},
                exc_info=True,
            )
            return None
