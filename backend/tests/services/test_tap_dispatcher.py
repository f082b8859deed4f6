"""Tap Dispatcher - end-to-end tap handling through the AccessEngine.

Tests:
    - A person's taps alternate entry/exit starting with entry
    - Unknown cards produce one unrecognized_tap event and no other writes
    - Resource entry with a borrower opens a loan; the next tap closes it
    - A rejected reservation writes no event
    - Exit without an active loan is a warning, the event is still recorded
    - Notification failures never fail a committed tap
    - Simultaneous taps of one card serialize: one entry, one exit
"""

import asyncio
from datetime import time, timedelta

import pytest
from sqlalchemy import func, select

from nfcdesk.core.errors import InvalidInputError, ResourceUnavailableError
from nfcdesk.models.access_event import AccessEvent
from nfcdesk.models.book import Book
from nfcdesk.models.computer import Computer
from nfcdesk.models.loan import Loan
from nfcdesk.services.access_engine import AccessEngine
from tests.fakes import NOW, BrokenSink


async def _count(factory, model) -> int:
    async with factory() as db:
        return await db.scalar(select(func.count()).select_from(model))


async def test_person_taps_alternate(engine, seed):
    actions = []
    for i in range(5):
        outcome = await engine.submit_tap("aa11", now=NOW + timedelta(minutes=i))
        actions.append(outcome.event.action)
    assert actions == ["entry", "exit", "entry", "exit", "entry"]


async def test_unrecognized_card(engine, seed, sink, test_session_factory):
    outcome = await engine.submit_tap("DEADBEEF", now=NOW)

    assert outcome.event.action == "unrecognized_tap"
    assert outcome.event.entity_kind is None
    assert outcome.ref is None
    assert outcome.loan is None
    assert await _count(test_session_factory, Loan) == 0
    assert await _count(test_session_factory, AccessEvent) == 1
    assert sink.events[-1]["data"]["action"] == "unrecognized_tap"


async def test_blank_card_rejected_before_any_write(engine, seed, test_session_factory):
    with pytest.raises(InvalidInputError):
        await engine.submit_tap("   ")
    assert await _count(test_session_factory, AccessEvent) == 0


async def test_book_entry_with_borrower_opens_and_exit_closes(
    engine, seed, test_session_factory,
):
    opened = await engine.submit_tap("CC33", borrower_id=seed.alice.id, now=NOW)
    assert opened.event.action == "entry"
    assert opened.event.usage_context == "book"
    assert opened.loan is not None
    assert opened.event.loan_id == opened.loan.id

    closed = await engine.submit_tap("CC33", now=NOW + timedelta(days=2))
    assert closed.event.action == "exit"
    assert closed.loan.id == opened.loan.id
    assert closed.loan.status == "closed"
    assert closed.warnings == []

    async with test_session_factory() as db:
        book = await db.get(Book, seed.book.id)
        assert book.status == "free"


async def test_entry_without_borrower_is_presence_only(engine, seed, test_session_factory):
    outcome = await engine.submit_tap("DD44", now=NOW)
    assert outcome.event.action == "entry"
    assert outcome.loan is None
    async with test_session_factory() as db:
        laptop = await db.get(Computer, seed.laptop.id)
        assert laptop.status == "free"


async def test_rejected_reservation_writes_nothing(engine, seed, test_session_factory):
    await engine.reserve("computer", seed.laptop.id, seed.bruno.id, now=NOW)

    with pytest.raises(ResourceUnavailableError):
        await engine.submit_tap("DD44", borrower_id=seed.alice.id, now=NOW)

    assert await _count(test_session_factory, AccessEvent) == 0
    assert await _count(test_session_factory, Loan) == 1


async def test_exit_without_active_loan_warns(engine, seed, test_session_factory):
    await engine.submit_tap("DD44", now=NOW)
    outcome = await engine.submit_tap("DD44", now=NOW + timedelta(minutes=5))

    assert outcome.event.action == "exit"
    assert outcome.loan is None
    assert outcome.warnings == ["NO_ACTIVE_LOAN"]
    assert await _count(test_session_factory, AccessEvent) == 2


async def test_events_published_after_commit(engine, seed, sink):
    await engine.submit_tap("AA11", now=NOW)
    await engine.submit_tap("BB22", now=NOW)

    assert [e["type"] for e in sink.events] == ["access_event", "access_event"]
    assert [e["data"]["entity_id"] for e in sink.events] == [seed.alice.id, seed.bruno.id]


async def test_broken_sink_does_not_fail_tap(db_manager, settings, seed, test_session_factory):
    engine = AccessEngine(db_manager, settings, sink=BrokenSink())
    await engine.ready()

    outcome = await engine.submit_tap("AA11", now=NOW)

    assert outcome.event.id is not None
    assert await _count(test_session_factory, AccessEvent) == 1


async def test_person_entry_checks_in_appointment(engine, seed):
    appointment = await engine.schedule_appointment(
        seed.alice.id, NOW.date(), time(10, 0), area="Sala 2",
    )

    outcome = await engine.submit_tap("AA11", now=NOW)

    assert outcome.appointment_id == appointment.id


async def test_person_exit_does_not_check_in(engine, seed):
    await engine.submit_tap("AA11", now=NOW - timedelta(hours=2))
    await engine.schedule_appointment(seed.alice.id, NOW.date(), time(10, 0))

    outcome = await engine.submit_tap("AA11", now=NOW)

    assert outcome.event.action == "exit"
    assert outcome.appointment_id is None


async def test_simultaneous_taps_of_one_card_alternate(engine, seed):
    outcomes = await asyncio.gather(
        engine.submit_tap("AA11", now=NOW),
        engine.submit_tap("AA11", now=NOW),
    )

    assert sorted(o.event.action for o in outcomes) == ["entry", "exit"]


async def test_simultaneous_borrower_taps_leave_one_active_loan(
    engine, seed, test_session_factory,
):
    outcomes = await asyncio.gather(
        engine.submit_tap("CC33", borrower_id=seed.alice.id, now=NOW),
        engine.submit_tap("CC33", borrower_id=seed.bruno.id, now=NOW),
        engine.submit_tap("CC33", borrower_id=seed.alice.id, now=NOW),
    )

    assert sorted(o.event.action for o in outcomes) == ["entry", "entry", "exit"]
    async with test_session_factory() as db:
        active = await db.scalar(
            select(func.count()).select_from(Loan).where(
                Loan.book_id == seed.book.id, Loan.status == "active",
            ),
        )
        book = await db.get(Book, seed.book.id)
    assert active == 1
    assert book.status == "loaned"
