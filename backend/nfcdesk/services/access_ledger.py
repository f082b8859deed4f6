"""Access Ledger - append-only log of card taps and the per-entity "current side".

Invariants:
    - append() is the only insert path into access_events; rows are never updated
    - last_action() reads the highest-id event of exactly one entity
    - purge() is the only delete path and clears the whole ledger
    - Callers serialize last_action() + append() per entity (see AccessEngine locks)

Design Decisions:
    - append() flushes so the sequence id is assigned inside the caller's transaction;
      the caller decides when to commit
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.access_rules import USAGE_BY_KIND
from nfcdesk.core.clock import utc_now
from nfcdesk.core.domain_types import AccessAction, EntityKind, EntityRef
from nfcdesk.models.access_event import AccessEvent
from nfcdesk.models.person import Person

logger = logging.getLogger(__name__)

ENTITY_COLUMNS = {
    EntityKind.PERSON: AccessEvent.person_id,
    EntityKind.BOOK: AccessEvent.book_id,
    EntityKind.COMPUTER: AccessEvent.computer_id,
}


class AccessLedger:
    """Reads and appends access events."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def last_action(self, ref: EntityRef) -> AccessAction | None:
        result = await self.db.execute(
            select(AccessEvent.action)
            .where(ENTITY_COLUMNS[ref.kind] == ref.id)
            .order_by(AccessEvent.id.desc())
            .limit(1),
        )
        action = result.scalar_one_or_none()
        return AccessAction(action) if action is not None else None

    async def append(
        self,
        card_id: str,
        action: AccessAction,
        ref: EntityRef | None = None,
        loan_id: int | None = None,
        occurred_at: datetime | None = None,
    ) -> AccessEvent:
        event = AccessEvent(
            card_id=card_id,
            action=action.value,
            usage_context=USAGE_BY_KIND[ref.kind].value if ref else None,
            loan_id=loan_id,
            occurred_at=occurred_at or utc_now(),
        )
        if ref is not None:
            match ref.kind:
                case EntityKind.PERSON:
                    event.person_id = ref.id
                case EntityKind.BOOK:
                    event.book_id = ref.id
                case EntityKind.COMPUTER:
                    event.computer_id = ref.id
        self.db.add(event)
        await self.db.flush()
        return event

    async def purge(self) -> int:
        """Administrative bulk delete of every access event."""
        result = await self.db.execute(delete(AccessEvent))
        logger.warning("Access ledger purged (%d events)", result.rowcount)
        return result.rowcount

    async def latest_card_id(self) -> str | None:
        result = await self.db.execute(
            select(AccessEvent.card_id).order_by(AccessEvent.id.desc()).limit(1),
        )
        return result.scalar_one_or_none()

    async def recent(
        self, limit: int = 50, card_id: str | None = None,
    ) -> list[AccessEvent]:
        """Newest events first, optionally the history of one card."""
        query = select(AccessEvent).order_by(AccessEvent.id.desc()).limit(limit)
        if card_id is not None:
            query = query.where(AccessEvent.card_id == card_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def people_inside(self) -> list[Person]:
        """People whose most recent event is an entry."""
        latest = (
            select(
                AccessEvent.person_id,
                func.max(AccessEvent.id).label("last_id"),
            )
            .where(AccessEvent.person_id.is_not(None))
            .group_by(AccessEvent.person_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Person)
            .join(latest, latest.c.person_id == Person.id)
            .join(AccessEvent, AccessEvent.id == latest.c.last_id)
            .where(AccessEvent.action == AccessAction.ENTRY.value)
            .order_by(Person.full_name),
        )
        return list(result.scalars().all())
