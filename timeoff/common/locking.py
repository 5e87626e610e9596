"""Per-key serialization of units of work, with bounded conflict retry.

A lifecycle operation (validate → write → commit) for one employee must not
interleave with another operation for the same employee. Inside a process an
``asyncio.Lock`` per key guarantees that; across processes the unit relies on
row locks (``SELECT … FOR UPDATE``) and the optimistic ``version`` column on
balance rows, whose failures surface here as retryable conflicts.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Hashable, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from timeoff.common.exceptions import PersistenceConflict
from timeoff.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


class KeyedLock:
    """Lazily created ``asyncio.Lock`` per key; unused locks are collected."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._lock_for(key)
        async with lock:
            yield

    def is_held(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()


employee_locks = KeyedLock()


def is_retryable_conflict(exc: BaseException) -> bool:
    """True for lost-update and serialization failures worth retrying."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if sqlstate in _RETRYABLE_SQLSTATES:
            return True
        return "database is locked" in str(orig)
    return False


async def serialized(
    db: AsyncSession,
    key: Hashable,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    locks: KeyedLock = employee_locks,
) -> T:
    """
    Run *work* and commit it while holding the lock for *key*.

    Any exception rolls the session back, so a failed unit leaves no trace.
    Retryable conflicts are attempted again up to ``CONFLICT_RETRY_LIMIT``
    times before surfacing as ``PersistenceConflict``. *work* must re-read
    everything it depends on, since each attempt starts from a clean session.
    """
    attempts = max(1, settings.CONFLICT_RETRY_LIMIT)
    for attempt in range(1, attempts + 1):
        async with locks.hold(key):
            try:
                result = await work(db)
                await db.commit()
                return result
            except Exception as exc:
                await db.rollback()
                if not is_retryable_conflict(exc):
                    raise
                logger.warning(
                    "Write conflict on %s (attempt %d/%d): %s",
                    key, attempt, attempts, exc,
                )
        await asyncio.sleep(settings.CONFLICT_RETRY_BACKOFF_MS / 1000 * attempt)

    raise PersistenceConflict()
