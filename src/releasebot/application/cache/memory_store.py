"""In-memory key/value store implementation."""

import asyncio
from collections.abc import Iterable

from releasebot.domain.ports import IKeyValueStore


class InMemoryKeyValueStore(IKeyValueStore):
    """In-memory IKeyValueStore using plain dictionaries.

    This is a simple implementation for development and testing.
    For durable state use SqlKeyValueStore.
    """

    # Listen up future me, this is IN-MEMORY ONLY! Process exit = every known release forgotten, and
    # the next run curates the whole lookback window again. The _lock is CRITICAL for async safety -
    # add_members() is a read-modify-write and two coroutines interleaving there would double count.
    # Always use "async with self._lock" before touching the dicts!
    def __init__(self) -> None:
        """Initialize in-memory store."""
        self._members: dict[str, set[str]] = {}
        self._values: dict[str, str] = {}
        self._lock = asyncio.Lock()

    # Yo, get_members returns a COPY. Callers mutating the result must not leak into the store.
    async def get_members(self, namespace: str) -> set[str]:
        """Get all members of a namespace."""
        async with self._lock:
            return set(self._members.get(namespace, ()))

    async def add_members(self, namespace: str, members: Iterable[str]) -> int:
        """Add members, returning how many were new."""
        async with self._lock:
            bucket = self._members.setdefault(namespace, set())
            before = len(bucket)
            bucket.update(members)
            return len(bucket) - before

    async def replace_members(self, namespace: str, members: Iterable[str]) -> None:
        """Replace all members of a namespace."""
        async with self._lock:
            self._members[namespace] = set(members)

    async def get_value(self, key: str) -> str | None:
        """Get scalar value."""
        async with self._lock:
            return self._values.get(key)

    # Hey, set_value ALWAYS overwrites without warning. No "insert only if missing" mode.
    async def set_value(self, key: str, value: str) -> None:
        """Set scalar value."""
        async with self._lock:
            self._values[key] = value

    async def delete_value(self, key: str) -> bool:
        """Delete scalar value."""
        async with self._lock:
            if key in self._values:
                del self._values[key]
                return True
            return False
