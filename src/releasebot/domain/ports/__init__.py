"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TypeVar

from releasebot.domain.entities import Release, Track

T = TypeVar("T")


# Hey future me, these are PORTS (Hexagonal Architecture)! The engine only talks to these ABCs -
# the actual catalog API client, OAuth handling and HTTP plumbing live OUTSIDE this package.
# Tests implement them with in-memory fakes (see tests/conftest.py). If you change a signature
# here, every adapter has to follow!
class IReleaseProvider(ABC):
    """Lists candidate releases of tracked artists (no tracks attached yet)."""

    @abstractmethod
    async def list_candidate_releases(self, artist_ids: Sequence[str]) -> list[Release]:
        """Get releases of the given artists, base category set, tracks empty."""
        pass


class ITrackProvider(ABC):
    """Fetches the full track listing of a release."""

    @abstractmethod
    async def get_tracks(self, release_id: str) -> list[Track]:
        """Get tracks of a release in catalog order."""
        pass


# Listen up, ICollectionProvider is the ONLY way we touch destination collections. Position 0 is the
# top of the collection (newest), the bottom holds the oldest items. chunk_limit is passed along
# so adapters can assert the per-request item limit instead of silently splitting again.
class ICollectionProvider(ABC):
    """Read/write access to ordered, capacity-limited destination collections."""

    @abstractmethod
    async def count(self, collection_id: str) -> int:
        """Current number of items in the collection."""
        pass

    @abstractmethod
    async def insert_at_top(
        self, collection_id: str, track_ids: Sequence[str], chunk_limit: int
    ) -> None:
        """Insert the given tracks at position 0 (len(track_ids) <= chunk_limit)."""
        pass

    @abstractmethod
    async def evict_from_bottom(self, collection_id: str, offset: int, count: int) -> None:
        """Remove `count` items starting at position `offset` (the bottom slice)."""
        pass


# Hey future me - IKeyValueStore is the durable backing of the IdentityCache and the per-category
# timestamps. Two shapes of data: MEMBER SETS under a namespace ("cache.release_ids" → {ids...})
# and plain scalar VALUES under a key ("target.album.last_update" → ISO timestamp). Keep it dumb -
# no TTLs, no business logic. Implementations: InMemoryKeyValueStore, SqlKeyValueStore.
class IKeyValueStore(ABC):
    """Durable key/value + set store."""

    @abstractmethod
    async def get_members(self, namespace: str) -> set[str]:
        """Get all members stored under a namespace (empty set if none)."""
        pass

    @abstractmethod
    async def add_members(self, namespace: str, members: Iterable[str]) -> int:
        """Add members to a namespace (idempotent). Returns number of newly added members."""
        pass

    @abstractmethod
    async def replace_members(self, namespace: str, members: Iterable[str]) -> None:
        """Replace the namespace's members wholesale."""
        pass

    @abstractmethod
    async def get_value(self, key: str) -> str | None:
        """Get a scalar value, None if unset."""
        pass

    @abstractmethod
    async def set_value(self, key: str, value: str) -> None:
        """Set a scalar value."""
        pass

    @abstractmethod
    async def delete_value(self, key: str) -> bool:
        """Delete a scalar value. Returns True if it existed."""
        pass


# Yo, the executor is where concurrency caps and rate limits live - NOT in the services.
# run_all() is join-style: it returns one entry per factory, in input order, each either the
# result or the exception that factory raised. It never raises for a single failing task
# (fail-independent, not fail-fast).
class ITaskExecutor(ABC):
    """Bounded-concurrency task executor."""

    @abstractmethod
    async def run_all(
        self, factories: Sequence[Callable[[], Awaitable[T]]]
    ) -> list[T | BaseException]:
        """Run all factories with bounded parallelism and wait for all of them."""
        pass

    @abstractmethod
    def submit(self, factory: Callable[[], Awaitable[T]]) -> "Awaitable[T]":
        """Schedule a single tracked task; the returned awaitable yields its result or raises."""
        pass


__all__ = [
    "ICollectionProvider",
    "IKeyValueStore",
    "IReleaseProvider",
    "ITaskExecutor",
    "ITrackProvider",
]
