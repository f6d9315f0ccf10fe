"""
Per-key async locks.

Read-modify-write operations on one resource (granting an editor,
recomputing a series) must not interleave, while operations on different
resources must run in parallel. KeyedLock hands out one asyncio.Lock per
key, created on first use and dropped once no task holds or waits on it.

Invariants:
    - At most one task holds the lock for a given key
    - An entry exists only while some task holds or waits on the key
    - The lock is released on every exit path, including exceptions and
      cancellation

How to change safely:
    - Locks are not reentrant; a task holding key K must not request K again
    - Acquire keys in a fixed order (unit before series) to avoid deadlock
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLock:
    """Registry of exclusive locks keyed by string (a URN).

    Thread safety:
        Safe for any number of coroutines on one event loop. The entry
        bookkeeping runs without awaiting, so it cannot interleave.

    Example:
        >>> locks = KeyedLock()
        >>> async with locks.hold("urn:mvn:series:abc"):
        ...     ...  # read, mutate, persist
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the exclusive lock for key for the duration of the block."""
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]
