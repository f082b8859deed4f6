"""Root conftest - shared database, engine and fake collaborator fixtures.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - Facility timezone is UTC so local dates equal UTC dates in assertions
    - The scheduler never starts in tests

Design Decisions:
    - File database instead of :memory: so each engine session gets its own
      connection, the way it does against PostgreSQL
    - Sink and sender are recording fakes (structural Protocols, no mocks)
"""

import os
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from nfcdesk.config import Settings  # noqa: E402
from nfcdesk.db.base import Base  # noqa: E402
from nfcdesk.db.session import create_session_factory  # noqa: E402
from nfcdesk.infrastructure.database import DatabaseSessionManager  # noqa: E402
from nfcdesk.models import Book, Computer, Person  # noqa: E402
from nfcdesk.services.access_engine import AccessEngine  # noqa: E402
from tests.fakes import RecordingSender, RecordingSink  # noqa: E402


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'nfcdesk.db'}"


@pytest.fixture
async def test_engine(database_url):
    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return create_session_factory(engine=test_engine)


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings(database_url):
    return Settings(
        database_url=database_url,
        facility_timezone="UTC",
        schema_strategy="none",
        scheduler_enabled=False,
        operation_timeout_seconds=5.0,
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def db_manager(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
async def engine(db_manager, settings, sink, sender):
    access = AccessEngine(db_manager, settings, sink=sink, sender=sender)
    await access.ready()
    return access


@pytest.fixture
async def seed(test_db):
    """Two people, one book and one computer, each with a card."""
    alice = Person(full_name="Alice Romero", email="alice@example.edu", card_id="AA11")
    bruno = Person(full_name="Bruno Diaz", email="bruno@example.edu", card_id="BB22")
    book = Book(title="Cien anos de soledad", author="G. Garcia Marquez", card_id="CC33")
    laptop = Computer(brand="Lenovo", model="T14", card_id="DD44")
    test_db.add_all([alice, bruno, book, laptop])
    await test_db.commit()
    return SimpleNamespace(alice=alice, bruno=bruno, book=book, laptop=laptop)
