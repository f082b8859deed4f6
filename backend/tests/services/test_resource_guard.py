"""Resource Exclusivity Guard - reserve/release rules and concurrent reservations.

Tests:
    - Books get due_at = start + loan_days; computers have no due date
    - A per-loan term overrides the default; the desk operator is recorded
    - Loaned and maintenance resources reject reservations
    - Concurrent reservations of one computer: exactly one wins
    - reserve then release frees the resource and closes exactly one loan
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from nfcdesk.core.clock import as_utc
from nfcdesk.core.domain_types import BookRef, ComputerRef
from nfcdesk.core.errors import (
    InvalidInputError, NoActiveLoanError, ResourceNotFoundError,
    ResourceUnavailableError,
)
from nfcdesk.models.computer import Computer
from nfcdesk.models.loan import Loan
from nfcdesk.services.resource_guard import ResourceGuard
from tests.fakes import NOW


async def test_reserve_book_sets_due_date(test_db, seed):
    loan = await ResourceGuard(test_db).reserve(BookRef(seed.book.id), seed.alice.id, NOW)
    assert loan.status == "active"
    assert loan.due_at == NOW + timedelta(days=7)
    assert seed.book.status == "loaned"


async def test_reserve_computer_has_no_due_date(test_db, seed):
    loan = await ResourceGuard(test_db).reserve(
        ComputerRef(seed.laptop.id), seed.alice.id, NOW,
    )
    assert loan.due_at is None
    assert loan.resource_id == seed.laptop.id


async def test_reserve_with_term_override_and_operator(test_db, seed):
    guard = ResourceGuard(test_db)
    book_loan = await guard.reserve(
        BookRef(seed.book.id), seed.alice.id, NOW, loan_days=3, operator="Marta",
    )
    laptop_loan = await guard.reserve(
        ComputerRef(seed.laptop.id), seed.bruno.id, NOW, loan_days=1,
    )
    await test_db.commit()

    assert book_loan.due_at == NOW + timedelta(days=3)
    assert book_loan.operator == "Marta"
    assert laptop_loan.due_at == NOW + timedelta(days=1)
    assert laptop_loan.operator is None


async def test_reserve_rejects_non_positive_term(test_db, seed):
    with pytest.raises(InvalidInputError) as exc_info:
        await ResourceGuard(test_db).reserve(
            BookRef(seed.book.id), seed.alice.id, NOW, loan_days=0,
        )
    assert exc_info.value.field == "loan_days"
    assert seed.book.status == "free"


async def test_reserve_loaned_resource_fails(test_db, seed):
    guard = ResourceGuard(test_db)
    await guard.reserve(BookRef(seed.book.id), seed.alice.id, NOW)
    with pytest.raises(ResourceUnavailableError) as exc_info:
        await guard.reserve(BookRef(seed.book.id), seed.bruno.id, NOW)
    assert exc_info.value.status == "loaned"


async def test_reserve_maintenance_resource_fails(test_db, seed):
    seed.laptop.status = "maintenance"
    await test_db.commit()
    with pytest.raises(ResourceUnavailableError) as exc_info:
        await ResourceGuard(test_db).reserve(
            ComputerRef(seed.laptop.id), seed.alice.id, NOW,
        )
    assert exc_info.value.status == "maintenance"


async def test_reserve_unknown_resource_or_borrower(test_db, seed):
    guard = ResourceGuard(test_db)
    with pytest.raises(ResourceNotFoundError):
        await guard.reserve(ComputerRef(999), seed.alice.id, NOW)
    with pytest.raises(ResourceNotFoundError):
        await guard.reserve(ComputerRef(seed.laptop.id), 999, NOW)


async def test_release_without_loan_fails(test_db, seed):
    with pytest.raises(NoActiveLoanError) as exc_info:
        await ResourceGuard(test_db).release(BookRef(seed.book.id), NOW)
    assert exc_info.value.code == "NO_ACTIVE_LOAN"


async def test_reserve_release_round_trip(engine, seed, test_session_factory):
    opened = await engine.reserve("computer", seed.laptop.id, seed.alice.id, now=NOW)
    closed = await engine.release("computer", seed.laptop.id, now=NOW + timedelta(hours=1))

    assert closed.id == opened.id
    assert closed.status == "closed"
    assert as_utc(closed.ended_at) >= as_utc(closed.started_at)
    async with test_session_factory() as db:
        laptop = await db.get(Computer, seed.laptop.id)
        assert laptop.status == "free"
        active = await db.scalar(
            select(func.count()).select_from(Loan).where(Loan.status == "active"),
        )
        assert active == 0


async def test_concurrent_reservations_single_winner(engine, seed, test_session_factory):
    results = await asyncio.gather(
        engine.reserve("computer", seed.laptop.id, seed.alice.id, now=NOW),
        engine.reserve("computer", seed.laptop.id, seed.bruno.id, now=NOW),
        engine.reserve("computer", seed.laptop.id, seed.alice.id, now=NOW),
        return_exceptions=True,
    )

    loans = [r for r in results if isinstance(r, Loan)]
    rejected = [r for r in results if isinstance(r, ResourceUnavailableError)]
    assert len(loans) == 1
    assert len(rejected) == 2
    async with test_session_factory() as db:
        laptop = await db.get(Computer, seed.laptop.id)
        assert laptop.status == "loaned"
        active = await db.scalar(
            select(func.count()).select_from(Loan).where(
                Loan.computer_id == seed.laptop.id, Loan.status == "active",
            ),
        )
        assert active == 1


async def test_double_booking_keeps_original_loan(engine, seed, test_session_factory):
    first = await engine.reserve("computer", seed.laptop.id, seed.alice.id, now=NOW)
    with pytest.raises(ResourceUnavailableError):
        await engine.reserve("computer", seed.laptop.id, seed.bruno.id, now=NOW)

    views = await engine.active_loans(now=NOW)
    assert [v.loan.id for v in views] == [first.id]
    assert views[0].loan.borrower_id == seed.alice.id
    assert views[0].resource_label == "Lenovo T14"


async def test_active_loans_days_remaining(engine, seed):
    await engine.reserve("book", seed.book.id, seed.bruno.id, now=NOW)
    views = await engine.active_loans(now=NOW + timedelta(days=4))
    assert views[0].days_remaining == 3
    assert views[0].resource_label == "Cien anos de soledad"
