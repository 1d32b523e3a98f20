"""Per-room-number locking used around availability check and reservation."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable
from weakref import WeakValueDictionary

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class KeyedLocks:
    """
    Registry of asyncio locks keyed by an arbitrary hashable.

    Locks are weakly referenced and disappear once no task holds or waits
    on them.
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[Hashable, asyncio.Lock] = WeakValueDictionary()

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


room_number_locks = KeyedLocks()


def room_number_lock_key(room_id, number: int) -> str:
    """Stable key for one physical room-number."""
    return f"room-number:{room_id}:{number}"


@asynccontextmanager
async def room_number_lock(db: AsyncSession, room_id, number: int) -> AsyncIterator[None]:
    """
    Serialize availability changes for one room-number.

    Holds a process-local lock for the duration of the block and, on
    PostgreSQL, a transaction-scoped advisory lock so that other processes
    are serialized as well. The advisory lock is released when the
    session's transaction ends, so the caller must commit or roll back
    inside the block.
    """
    key = room_number_lock_key(room_id, number)
    lock = room_number_locks.get(key)

    async with lock:
        if db.bind is not None and db.bind.dialect.name == "postgresql":
            await db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
                {"lock_key": key}
            )

        logger.debug("Acquired room-number lock", extra={"lock_key": key})
        yield
