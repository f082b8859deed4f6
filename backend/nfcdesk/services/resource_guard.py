"""Resource Exclusivity Guard - at most one active loan per book or computer.

Invariants:
    - reserve() succeeds only when status == free and no active loan row exists
    - release() closes exactly one active loan and frees the resource
    - Only this module writes Loan rows and the Book/Computer status column
    - Callers hold lock(ref) from before reserve()/release() until after commit

Design Decisions:
    - Check-then-act under a per-resource asyncio.Lock plus SELECT ... FOR UPDATE on
      the resource row (a no-op on SQLite); the partial unique indexes on loans are
      the last line if two processes race
    - Never commits: the dispatcher commits the loan together with its access event
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nfcdesk.core.clock import as_utc, local_today, utc_now
from nfcdesk.core.domain_types import (
    EntityKind, LoanStatus, ResourceRef, ResourceStatus, make_ref,
)
from nfcdesk.core.errors import (
    InvalidInputError, NoActiveLoanError, ResourceNotFoundError,
    ResourceUnavailableError,
)
from nfcdesk.core.reminder_rules import days_remaining
from nfcdesk.infrastructure.keyed_locks import KeyedLocks
from nfcdesk.models.book import Book
from nfcdesk.models.computer import Computer
from nfcdesk.models.loan import Loan
from nfcdesk.models.person import Person

logger = logging.getLogger(__name__)

RESOURCE_MODELS = {
    EntityKind.BOOK: Book,
    EntityKind.COMPUTER: Computer,
}


@dataclass(frozen=True)
class ActiveLoanView:
    """Active loan joined with the display fields of its resource."""
    loan: Loan
    resource_label: str
    days_remaining: int | None


def _loan_column(ref: ResourceRef):
    return Loan.book_id if ref.kind == EntityKind.BOOK else Loan.computer_id


class ResourceGuard:
    """Reserve/release with per-resource locking."""

    def __init__(self, db: AsyncSession, locks: KeyedLocks | None = None):
        self.db = db
        self.locks = locks or KeyedLocks()

    def lock(self, ref: ResourceRef):
        return self.locks.hold(("loan", ref.kind.value, ref.id))

    async def _load_for_update(self, ref: ResourceRef) -> Book | Computer:
        model = RESOURCE_MODELS.get(ref.kind)
        if model is None:
            raise ResourceNotFoundError("Resource", f"{ref.kind.value}:{ref.id}")
        result = await self.db.execute(
            select(model)
            .where(model.id == ref.id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        resource = result.scalar_one_or_none()
        if resource is None:
            raise ResourceNotFoundError(ref.kind.value.capitalize(), str(ref.id))
        return resource

    async def active_loan(self, ref: ResourceRef) -> Loan | None:
        result = await self.db.execute(
            select(Loan).where(
                _loan_column(ref) == ref.id,
                Loan.status == LoanStatus.ACTIVE.value,
            ),
        )
        return result.scalar_one_or_none()

    async def reserve(
        self,
        ref: ResourceRef,
        borrower_id: int,
        now: datetime | None = None,
        loan_days: int | None = None,
        operator: str | None = None,
    ) -> Loan:
        """Open an active loan on a free resource.

        loan_days overrides the book's default term; for computers it sets a due
        date where there would otherwise be none. operator records the desk staff
        member who lent the item (tap loans have none).
        """
        if loan_days is not None and loan_days < 1:
            raise InvalidInputError("loan_days must be at least 1", "loan_days")
        now = now or utc_now()
        resource = await self._load_for_update(ref)
        if resource.status != ResourceStatus.FREE.value:
            raise ResourceUnavailableError(ref.kind.value, ref.id, resource.status)
        if await self.active_loan(ref) is not None:
            # status column drifted from the loans table
            logger.warning(
                "Resource marked free but holds an active loan",
                extra={"entity_kind": ref.kind.value, "entity_id": ref.id},
            )
            raise ResourceUnavailableError(
                ref.kind.value, ref.id, ResourceStatus.LOANED.value,
            )
        if await self.db.get(Person, borrower_id) is None:
            raise ResourceNotFoundError("Person", str(borrower_id))

        loan = Loan(
            resource_kind=ref.kind.value,
            borrower_id=borrower_id,
            status=LoanStatus.ACTIVE.value,
            started_at=now,
            operator=operator,
        )
        if ref.kind == EntityKind.BOOK:
            loan.book_id = ref.id
            term = loan_days if loan_days is not None else resource.loan_days
        else:
            loan.computer_id = ref.id
            term = loan_days
        if term is not None:
            loan.due_at = now + timedelta(days=term)
        resource.status = ResourceStatus.LOANED.value
        self.db.add(loan)
        await self.db.flush()
        logger.info(
            "Loan opened",
            extra={
                "entity_kind": ref.kind.value, "entity_id": ref.id,
                "loan_id": loan.id,
            },
        )
        return loan

    async def release(self, ref: ResourceRef, now: datetime | None = None) -> Loan:
        now = now or utc_now()
        resource = await self._load_for_update(ref)
        loan = await self.active_loan(ref)
        if loan is None:
            raise NoActiveLoanError(ref.kind.value, ref.id)
        loan.status = LoanStatus.CLOSED.value
        loan.ended_at = now
        resource.status = ResourceStatus.FREE.value
        await self.db.flush()
        logger.info(
            "Loan closed",
            extra={
                "entity_kind": ref.kind.value, "entity_id": ref.id,
                "loan_id": loan.id,
            },
        )
        return loan

    async def active_loans(self, now: datetime, tz) -> list[ActiveLoanView]:
        """Every active loan, soonest due first; computers (no due date) last."""
        result = await self.db.execute(
            select(Loan).where(Loan.status == LoanStatus.ACTIVE.value),
        )
        today = local_today(now, tz)
        views = []
        for loan in result.scalars().all():
            ref = make_ref(EntityKind(loan.resource_kind), loan.resource_id)
            resource = await self.db.get(RESOURCE_MODELS[ref.kind], ref.id)
            label = resource.title if ref.kind == EntityKind.BOOK else resource.label
            due_at = as_utc(loan.due_at)
            views.append(ActiveLoanView(
                loan=loan,
                resource_label=label,
                days_remaining=days_remaining(due_at, today, tz) if due_at else None,
            ))
        views.sort(key=lambda v: (v.days_remaining is None, v.days_remaining or 0))
        return views
