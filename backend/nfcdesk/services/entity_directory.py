"""Entity Directory - resolves a card to at most one person, book or computer.

Invariants:
    - resolve() is a pure read: no writes, no flush
    - Priority Person > Book > Computer when a card matches several kinds; the
      conflict is logged as DIRECTORY_AMBIGUITY and never raised
    - assign_card() keeps card_assignments and the entity's card_id column in step

Design Decisions:
    - Lookup against the entity tables (not card_assignments) so rows imported
      without going through assign_card still resolve
    - Explicit (kind, model) table instead of getattr dispatch
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.domain_types import EntityKind, EntityRef, make_ref
from nfcdesk.core.errors import (
    CardAlreadyAssignedError, DirectoryAmbiguityError, ResourceNotFoundError,
)
from nfcdesk.models.book import Book
from nfcdesk.models.card_assignment import CardAssignment
from nfcdesk.models.computer import Computer
from nfcdesk.models.person import Person

logger = logging.getLogger(__name__)

# Resolution priority order
ENTITY_MODELS = (
    (EntityKind.PERSON, Person),
    (EntityKind.BOOK, Book),
    (EntityKind.COMPUTER, Computer),
)
MODEL_BY_KIND = dict(ENTITY_MODELS)


class EntityDirectory:
    """Card -> entity lookups and card (un)assignment."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, card_id: str) -> EntityRef | None:
        matches: list[EntityRef] = []
        for kind, model in ENTITY_MODELS:
            result = await self.db.execute(
                select(model.id).where(model.card_id == card_id),
            )
            entity_id = result.scalar_one_or_none()
            if entity_id is not None:
                matches.append(make_ref(kind, entity_id))
        if not matches:
            return None
        if len(matches) > 1:
            err = DirectoryAmbiguityError(
                card_id, [m.kind.value for m in matches], matches[0].kind.value,
            )
            logger.warning(
                err.message,
                extra={"error_code": err.code, "card_id": card_id},
            )
        return matches[0]

    async def get(self, ref: EntityRef):
        """Load the ORM row for ref or raise ResourceNotFoundError."""
        entity = await self.db.get(MODEL_BY_KIND[ref.kind], ref.id)
        if entity is None:
            raise ResourceNotFoundError(ref.kind.value.capitalize(), str(ref.id))
        return entity

    async def assign_card(self, card_id: str, ref: EntityRef) -> None:
        """Bind card_id to ref. Re-binding the same pair is a no-op. Never commits."""
        entity = await self.get(ref)
        owner = await self.resolve(card_id)
        if owner is not None and owner != ref:
            raise CardAlreadyAssignedError(card_id, owner.kind.value, owner.id)
        existing = await self.db.get(CardAssignment, card_id)
        if existing is not None:
            if (existing.entity_kind, existing.entity_id) != (ref.kind.value, ref.id):
                raise CardAlreadyAssignedError(
                    card_id, existing.entity_kind, existing.entity_id,
                )
            entity.card_id = card_id
            await self.db.flush()
            return

        # An entity holds one card: drop the previous binding
        previous = await self.db.execute(
            select(CardAssignment).where(
                CardAssignment.entity_kind == ref.kind.value,
                CardAssignment.entity_id == ref.id,
            ),
        )
        for old in previous.scalars().all():
            await self.db.delete(old)
        await self.db.flush()

        self.db.add(CardAssignment(
            card_id=card_id, entity_kind=ref.kind.value, entity_id=ref.id,
        ))
        entity.card_id = card_id
        await self.db.flush()
        logger.info(
            "Card assigned",
            extra={
                "card_id": card_id, "entity_kind": ref.kind.value,
                "entity_id": ref.id,
            },
        )

    async def unassign_card(self, card_id: str) -> EntityRef | None:
        """Remove card_id from the namespace and its owner. Returns the former owner."""
        owner = await self.resolve(card_id)
        assignment = await self.db.get(CardAssignment, card_id)
        if assignment is not None:
            await self.db.delete(assignment)
        if owner is not None:
            entity = await self.get(owner)
            entity.card_id = None
        await self.db.flush()
        return owner
