"""Unit tests for IdentityCache.

Hey future me - the idempotence test is THE contract: filtering twice without a commit in between
gives the same answer, and a committed release never comes back.
"""

import asyncio
from datetime import UTC, datetime, timedelta

from fakes import make_release
from releasebot.application.cache.identity_cache import (
    ARTIST_IDS_NAMESPACE,
    ARTIST_LAST_REFRESHED_KEY,
    RELEASE_IDS_NAMESPACE,
    IdentityCache,
)
from releasebot.application.cache.memory_store import InMemoryKeyValueStore
from releasebot.domain.value_objects.release_categories import BaseCategory

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


class TestFilterNewReleases:
    """Tests for filter_new_releases()."""

    async def test_idempotent_without_commit(self, identity_cache: IdentityCache) -> None:
        await identity_cache.load()
        candidates = [make_release("r1", "One"), make_release("r2", "Two")]
        first = identity_cache.filter_new_releases(candidates)
        second = identity_cache.filter_new_releases(candidates)
        assert first == second == candidates

    async def test_committed_release_is_excluded(self, identity_cache: IdentityCache) -> None:
        await identity_cache.load()
        candidates = [make_release("r1", "One"), make_release("r2", "Two")]
        await identity_cache.commit([candidates[0]])
        assert identity_cache.filter_new_releases(candidates) == [candidates[1]]

    async def test_reissue_with_new_id_is_excluded(self, identity_cache: IdentityCache) -> None:
        await identity_cache.load()
        await identity_cache.commit([make_release("r1", "Nevermind", artists=["nirvana"])])
        reissue = make_release("r9", "Nevermind (Deluxe Edition)", artists=["nirvana"])
        assert identity_cache.filter_new_releases([reissue]) == []

    async def test_order_preserved_and_repeated_ids_dropped(
        self, identity_cache: IdentityCache
    ) -> None:
        await identity_cache.load()
        a = make_release("a", "Alpha")
        b = make_release("b", "Beta")
        b_again = make_release("b", "Beta")
        b_reissue = make_release("b2", "Beta (Remastered)")
        assert identity_cache.filter_new_releases([b, a, b_again, b_reissue]) == [
            b,
            a,
            b_reissue,
        ]

    async def test_same_fingerprint_in_one_batch_both_pass(
        self, identity_cache: IdentityCache
    ) -> None:
        """An album and its same-named single are both new and go to different collections."""
        await identity_cache.load()
        album = make_release("a1", "Midnight")
        single = make_release("s1", "Midnight - Single", base=BaseCategory.SINGLE)

        assert identity_cache.filter_new_releases([album, single]) == [album, single]

        await identity_cache.commit([album, single])
        assert identity_cache.filter_new_releases([album, single]) == []


class TestCommit:
    """Tests for commit()."""

    async def test_commit_persists_to_store(
        self, identity_cache: IdentityCache, store: InMemoryKeyValueStore
    ) -> None:
        await identity_cache.commit([make_release("r1")])
        assert await store.get_members(RELEASE_IDS_NAMESPACE) == {"r1"}

        reloaded = IdentityCache(store)
        await reloaded.load()
        assert reloaded.is_release_known(make_release("r1"))

    async def test_commit_is_idempotent(self, identity_cache: IdentityCache) -> None:
        release = make_release("r1")
        assert await identity_cache.commit([release]) == 1
        assert await identity_cache.commit([release]) == 0
        assert identity_cache.known_release_ids == frozenset({"r1"})

    async def test_concurrent_commits_lose_nothing(self, identity_cache: IdentityCache) -> None:
        releases = [make_release(f"r{i}", f"Title {i}") for i in range(20)]
        await asyncio.gather(*(identity_cache.commit([r]) for r in releases))
        assert len(identity_cache.known_release_ids) == 20
        assert len(identity_cache.known_release_fingerprints) == 20

    async def test_empty_commit_is_noop(self, identity_cache: IdentityCache) -> None:
        assert await identity_cache.commit([]) == 0


class TestArtistCache:
    """Tests for the followed-artist set."""

    async def test_never_refreshed_is_expired(self, identity_cache: IdentityCache) -> None:
        await identity_cache.load()
        assert identity_cache.artist_cache_last_refreshed is None
        assert identity_cache.artist_cache_expired(NOW, timedelta(days=1))

    async def test_refresh_replaces_set(
        self, identity_cache: IdentityCache, store: InMemoryKeyValueStore
    ) -> None:
        await identity_cache.refresh_artist_set(["a", "b"], now=NOW)
        await identity_cache.refresh_artist_set(["b", "c"], now=NOW)
        assert identity_cache.is_artist_known("c")
        assert not identity_cache.is_artist_known("a")
        assert await store.get_members(ARTIST_IDS_NAMESPACE) == {"b", "c"}
        assert await store.get_value(ARTIST_LAST_REFRESHED_KEY) == NOW.isoformat()

    async def test_expiry_boundary(self, identity_cache: IdentityCache) -> None:
        await identity_cache.refresh_artist_set(["a"], now=NOW)
        ttl = timedelta(days=1)
        assert not identity_cache.artist_cache_expired(NOW + timedelta(hours=23), ttl)
        assert identity_cache.artist_cache_expired(NOW + ttl, ttl)

    async def test_load_restores_timestamp(
        self, identity_cache: IdentityCache, store: InMemoryKeyValueStore
    ) -> None:
        await identity_cache.refresh_artist_set(["a"], now=NOW)
        reloaded = IdentityCache(store)
        await reloaded.load()
        assert reloaded.artist_cache_last_refreshed == NOW
        assert reloaded.known_artist_ids == frozenset({"a"})

    async def test_garbage_timestamp_counts_as_never(
        self, store: InMemoryKeyValueStore
    ) -> None:
        await store.set_value(ARTIST_LAST_REFRESHED_KEY, "not-a-date")
        cache = IdentityCache(store)
        await cache.load()
        assert cache.artist_cache_last_refreshed is None
