"""Keyed Locks - one asyncio.Lock per key, created on demand and dropped when idle.

Invariants:
    - Two holders of the same key never run concurrently inside hold()
    - A key's lock is removed once no task holds or waits on it (bounded memory)

Design Decisions:
    - Process-local: a single uvicorn worker serializes per-entity work here; across
      workers the guard's SELECT ... FOR UPDATE and partial unique indexes apply
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLocks:
    """Registry of per-key locks with reference counting."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

    def is_held(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()
