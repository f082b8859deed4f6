"""Access Engine - readiness, schema preparation, timeouts and input mapping.

Tests:
    - Operations before ready() raise ENGINE_NOT_READY
    - ready() with create_all and with alembic migrations yields a working schema
    - An operation exceeding operation_timeout_seconds raises OPERATION_TIMEOUT
    - A stalled check-in after a committed tap is a warning, never a failure
    - Request-level kinds are validated before any database work
"""

import asyncio
from datetime import timedelta

import pytest

from nfcdesk.config import Settings
from nfcdesk.core.domain_types import BookRef
from nfcdesk.core.errors import (
    EngineNotReadyError, InvalidInputError, OperationTimeoutError,
)
from nfcdesk.infrastructure.database import DatabaseSessionManager
from nfcdesk.services.access_engine import AccessEngine
from nfcdesk.services.access_ledger import AccessLedger
from tests.fakes import NOW


async def test_submit_before_ready_fails(db_manager, settings, seed):
    engine = AccessEngine(db_manager, settings)
    assert not engine.is_ready
    with pytest.raises(EngineNotReadyError) as exc_info:
        await engine.submit_tap("AA11")
    assert exc_info.value.retryable


@pytest.mark.parametrize("strategy", ["create_all", "migrate"])
async def test_ready_prepares_fresh_database(tmp_path, strategy):
    url = f"sqlite+aiosqlite:///{tmp_path / f'{strategy}.db'}"
    settings = Settings(
        database_url=url, facility_timezone="UTC",
        schema_strategy=strategy, scheduler_enabled=False,
    )
    manager = DatabaseSessionManager(url)
    engine = AccessEngine(manager, settings)
    try:
        await engine.ready()
        outcome = await engine.submit_tap("cafe01", now=NOW)
        assert outcome.event.action == "unrecognized_tap"
        assert await engine.latest_card_id() == "CAFE01"
    finally:
        await manager.dispose()


async def test_slow_operation_times_out(engine, settings, monkeypatch):
    settings.operation_timeout_seconds = 0.05

    async def stalled(self):
        await asyncio.sleep(1)

    monkeypatch.setattr(AccessLedger, "latest_card_id", stalled)

    with pytest.raises(OperationTimeoutError) as exc_info:
        await engine.latest_card_id()
    assert exc_info.value.http_status == 503
    assert exc_info.value.context.retry_after_ms == 500


async def test_slow_check_in_does_not_fail_committed_tap(engine, settings, seed, monkeypatch):
    settings.operation_timeout_seconds = 0.5

    async def stalled(self, person_id, now):
        await asyncio.sleep(5)

    monkeypatch.setattr(AccessEngine, "_check_in", stalled)

    outcome = await engine.submit_tap("AA11", now=NOW)
    assert outcome.event.action == "entry"
    assert outcome.appointment_id is None
    assert outcome.warnings == ["CHECK_IN_TIMEOUT"]

    # the reader sees success, so the next tap is a genuine second tap
    following = await engine.submit_tap("AA11", now=NOW + timedelta(minutes=1))
    assert following.event.action == "exit"
    assert [e.action for e in await engine.recent_events()] == ["exit", "entry"]


async def test_people_cannot_be_reserved(engine, seed):
    with pytest.raises(InvalidInputError) as exc_info:
        await engine.reserve("person", seed.alice.id, seed.bruno.id)
    assert exc_info.value.field == "resource_kind"


async def test_assign_card_normalizes(engine, seed):
    ref = await engine.assign_card(" ee55 ", "book", seed.book.id)
    assert ref == BookRef(seed.book.id)

    outcome = await engine.submit_tap("EE55", now=NOW)
    assert outcome.ref == BookRef(seed.book.id)


async def test_unknown_entity_kind(engine, seed):
    with pytest.raises(InvalidInputError):
        await engine.assign_card("EE55", "printer", 1)


async def test_people_inside_and_purge(engine, seed):
    await engine.submit_tap("AA11", now=NOW)
    await engine.submit_tap("BB22", now=NOW)
    await engine.submit_tap("BB22", now=NOW)

    inside = await engine.people_inside()
    assert [p.full_name for p in inside] == ["Alice Romero"]

    assert await engine.purge_events() == 3
    assert await engine.recent_events() == []
