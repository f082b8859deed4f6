"""Async Session Factory - raw session factory for scripts and test fixtures.

Invariants:
    - Sessions never expire on commit (objects stay readable after the transaction)

Design Decisions:
    - Separate from infrastructure/database.py: no pooling options, no error mapping,
      for contexts that manage their own engine lifetime
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def create_session_factory(
    database_url: str | None = None, engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given database URL or engine."""
    if engine is None:
        engine = create_async_engine(database_url, echo=False)
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
