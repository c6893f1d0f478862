"""Identity cache - remembers which releases and artists were already processed.

Hey future me - this is the GATE of the whole engine. Everything downstream (track fetches,
classification, collection writes) only ever sees releases that got past filter_new_releases().
A release is "known" if EITHER its id OR its fingerprint (normalized title + artists) was
committed before. The fingerprint half is what stops a "(Deluxe Edition)" reissue with a
brand-new id from being curated a second time.

State lives in memory after load() and is written through to the IKeyValueStore on every
commit. Only commit() and refresh_artist_set() mutate it.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from releasebot.domain.entities import Release
from releasebot.domain.ports import IKeyValueStore

logger = logging.getLogger(__name__)

RELEASE_IDS_NAMESPACE = "cache.release_ids"
RELEASE_FINGERPRINTS_NAMESPACE = "cache.release_fingerprints"
ARTIST_IDS_NAMESPACE = "cache.artist_ids"
ARTIST_LAST_REFRESHED_KEY = "cache.artist_ids.last_refreshed"


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Ignoring unparseable cache timestamp %r", raw)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class IdentityCache:
    """Set-based dedup cache for releases and followed artists."""

    def __init__(self, store: IKeyValueStore) -> None:
        self._store = store
        self._release_ids: set[str] = set()
        self._fingerprints: set[str] = set()
        self._artist_ids: set[str] = set()
        self._artist_last_refreshed: datetime | None = None
        # Single writer: commit() and refresh_artist_set() may be called from concurrent tasks
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Read all cache state from the backing store."""
        async with self._lock:
            self._release_ids = await self._store.get_members(RELEASE_IDS_NAMESPACE)
            self._fingerprints = await self._store.get_members(RELEASE_FINGERPRINTS_NAMESPACE)
            self._artist_ids = await self._store.get_members(ARTIST_IDS_NAMESPACE)
            self._artist_last_refreshed = _parse_timestamp(
                await self._store.get_value(ARTIST_LAST_REFRESHED_KEY)
            )
        logger.debug(
            "Identity cache loaded: %d release ids, %d fingerprints, %d artists",
            len(self._release_ids),
            len(self._fingerprints),
            len(self._artist_ids),
        )

    @property
    def known_release_ids(self) -> frozenset[str]:
        return frozenset(self._release_ids)

    @property
    def known_release_fingerprints(self) -> frozenset[str]:
        return frozenset(self._fingerprints)

    @property
    def known_artist_ids(self) -> frozenset[str]:
        return frozenset(self._artist_ids)

    @property
    def artist_cache_last_refreshed(self) -> datetime | None:
        return self._artist_last_refreshed

    def is_release_known(self, release: Release) -> bool:
        return release.id in self._release_ids or release.fingerprint in self._fingerprints

    # Yo, this is READ-ONLY and order-preserving. Calling it twice on the same input gives the same
    # output as long as nothing was committed in between. Inside the batch only repeated IDS are
    # dropped (the catalog lists a collab once per participating artist). Two new releases sharing a
    # fingerprint both pass: "Midnight" and "Midnight - Single" belong in different collections.
    def filter_new_releases(self, candidates: Sequence[Release]) -> list[Release]:
        """Return candidates whose id and fingerprint are both unknown."""
        seen_ids: set[str] = set()
        fresh: list[Release] = []
        for release in candidates:
            if release.id in self._release_ids or release.fingerprint in self._fingerprints:
                continue
            if release.id in seen_ids:
                continue
            seen_ids.add(release.id)
            fresh.append(release)
        return fresh

    async def commit(self, releases: Iterable[Release]) -> int:
        """Mark releases as processed and persist them.

        Idempotent: committing an already known release is a no-op.

        Returns:
            Number of release ids that were new to the cache
        """
        releases = list(releases)
        if not releases:
            return 0
        ids = [release.id for release in releases]
        fingerprints = [release.fingerprint for release in releases]
        async with self._lock:
            added = await self._store.add_members(RELEASE_IDS_NAMESPACE, ids)
            await self._store.add_members(RELEASE_FINGERPRINTS_NAMESPACE, fingerprints)
            self._release_ids.update(ids)
            self._fingerprints.update(fingerprints)
        logger.debug("Committed %d releases to identity cache (%d new)", len(ids), added)
        return added

    def is_artist_known(self, artist_id: str) -> bool:
        return artist_id in self._artist_ids

    # Hey future me - the artist set is REPLACED, not merged. Unfollowed artists must drop out,
    # otherwise their releases would never count as "new artist backlog" again if re-followed.
    async def refresh_artist_set(
        self, current_followed_artist_ids: Iterable[str], now: datetime | None = None
    ) -> None:
        """Replace the known-artist set and reset its refresh timestamp."""
        artist_ids = set(current_followed_artist_ids)
        refreshed_at = now or datetime.now(UTC)
        async with self._lock:
            await self._store.replace_members(ARTIST_IDS_NAMESPACE, artist_ids)
            await self._store.set_value(ARTIST_LAST_REFRESHED_KEY, refreshed_at.isoformat())
            self._artist_ids = artist_ids
            self._artist_last_refreshed = refreshed_at
        logger.info("Artist cache refreshed with %d artists", len(artist_ids))

    def artist_cache_expired(self, now: datetime, ttl: timedelta) -> bool:
        """True if the artist set was never refreshed or is at least `ttl` old."""
        if self._artist_last_refreshed is None:
            return True
        return now - self._artist_last_refreshed >= ttl


__all__ = [
    "ARTIST_IDS_NAMESPACE",
    "ARTIST_LAST_REFRESHED_KEY",
    "IdentityCache",
    "RELEASE_FINGERPRINTS_NAMESPACE",
    "RELEASE_IDS_NAMESPACE",
]
