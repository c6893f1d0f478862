"""Collection curator - writes classified releases into their capacity-limited collections.

Hey future me - this is where releases finally become visible to the user! Per run:

1. Inert releases (blacklisted, new-artist backlog) and releases whose category has no
   destination collection are set aside - they only get committed to the identity cache.
2. The rest is grouped by extended category and processed group by group in
   DEFAULT_CATEGORY_ORDER. Inside a group, releases are sorted oldest first so the NEWEST
   release ends up at the very top after all inserts at position 0.
3. Each group walks a tiny state machine:

       PENDING → CAPACITY_CHECKED → (EVICTING)? → INSERTING → DONE
       PENDING → CAPACITY_CHECKED → SKIPPED

   A WriteError freezes the group in whatever state it was in (EVICTING or INSERTING).
   There is NO retry inside a run - the releases stay uncommitted and the next run picks
   them up again. Yes, that can duplicate the tracks that did land before the failure.
4. Everything that's DONE (plus inert/targetless releases) is committed at the end.

Writes are strictly sequential: one group at a time, one chunk at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.services.collection_targets import CollectionTargetRegistry
from releasebot.config import BatchingPolicy, CurationSettings
from releasebot.domain.entities import ClassifiedRelease, CollectionTarget, Release
from releasebot.domain.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    CurationError,
    WriteError,
)
from releasebot.domain.ports import ICollectionProvider
from releasebot.domain.value_objects.release_categories import (
    DEFAULT_CATEGORY_ORDER,
    ExtendedCategory,
)
from releasebot.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

INERT_NO_TARGET = "no_target"


class GroupState(str, Enum):
    """Lifecycle of one category group inside a curation run."""

    PENDING = "pending"
    CAPACITY_CHECKED = "capacity_checked"
    EVICTING = "evicting"
    INSERTING = "inserting"
    DONE = "done"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.value


@dataclass
class GroupResult:
    """Outcome of one category group."""

    category: ExtendedCategory
    collection_id: str
    releases: list[Release]
    state: GroupState = GroupState.PENDING
    songs_to_add: int = 0
    evicted: int = 0
    inserted: int = 0
    # Sizes of the insert requests actually sent, in order
    chunks: list[int] = field(default_factory=list)
    error: CurationError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is GroupState.DONE


@dataclass
class CurationResult:
    """Outcome of a full curation pass.

    Attributes:
        groups: One entry per category group that had a destination
        inert: Releases that skipped curation (with their reason)
        committed: Releases committed to the identity cache
        errors: Group-level failures (CapacityExceededError, WriteError)
        warnings: Missing destinations (ConfigurationError), not failures
    """

    groups: list[GroupResult] = field(default_factory=list)
    inert: list[ClassifiedRelease] = field(default_factory=list)
    committed: list[Release] = field(default_factory=list)
    errors: list[CurationError] = field(default_factory=list)
    warnings: list[ConfigurationError] = field(default_factory=list)

    @property
    def curated_releases(self) -> list[Release]:
        return [release for group in self.groups if group.succeeded for release in group.releases]

    def group(self, category: ExtendedCategory) -> GroupResult | None:
        for group in self.groups:
            if group.category is category:
                return group
        return None


class CollectionCurator:
    """Groups, batches and writes classified releases into destination collections."""

    def __init__(
        self,
        collections: ICollectionProvider,
        identity_cache: IdentityCache,
        settings: CurationSettings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._collections = collections
        self._identity_cache = identity_cache
        self._settings = settings
        self._sleep = sleep

    async def curate(
        self,
        classified_releases: Sequence[ClassifiedRelease],
        targets: CollectionTargetRegistry,
        now: datetime | None = None,
    ) -> CurationResult:
        """Write all non-inert releases to their collections and commit what's finished."""
        result = CurationResult()
        to_commit: list[Release] = []

        grouped: dict[ExtendedCategory, list[Release]] = {}
        for item in classified_releases:
            if item.inert:
                result.inert.append(item)
                to_commit.append(item.release)
            else:
                grouped.setdefault(item.category, []).append(item.release)

        for category in DEFAULT_CATEGORY_ORDER:
            releases = grouped.get(category)
            if not releases:
                continue

            target = targets.get(category)
            if not target.is_configured:
                warning = ConfigurationError(
                    f"No collection configured for category '{category}'", category=category
                )
                result.warnings.append(warning)
                logger.warning(LogMessages.missing_target(str(category), len(releases)))
                result.inert.extend(
                    ClassifiedRelease(release=r, category=category).as_inert(INERT_NO_TARGET)
                    for r in releases
                )
                to_commit.extend(releases)
                continue

            group = await self._curate_group(category, target, releases)
            result.groups.append(group)
            if group.succeeded:
                await targets.mark_updated(category, now)
                to_commit.extend(group.releases)
            elif group.error is not None:
                result.errors.append(group.error)

        if to_commit:
            await self._identity_cache.commit(to_commit)
        result.committed = to_commit
        return result

    async def _curate_group(
        self,
        category: ExtendedCategory,
        target: CollectionTarget,
        releases: list[Release],
    ) -> GroupResult:
        collection_id = target.collection_id or ""
        group = GroupResult(
            category=category,
            collection_id=collection_id,
            releases=sorted(releases, key=Release.sort_key),
        )
        group.songs_to_add = sum(release.track_count for release in group.releases)
        capacity = self._settings.collection_capacity

        try:
            current = await self._collections.count(collection_id)
        except Exception as e:
            return self._fail(group, WriteError(collection_id, "count", e, category=category))
        group.state = GroupState.CAPACITY_CHECKED

        # Hey future me - a group that's bigger than the WHOLE collection can't be made to fit by
        # evicting, so it's skipped no matter what eviction_enabled says.
        overflow = current + group.songs_to_add - capacity
        if overflow > 0 and (
            not self._settings.eviction_enabled or group.songs_to_add > capacity
        ):
            group.state = GroupState.SKIPPED
            group.error = CapacityExceededError(
                collection_id, current, group.songs_to_add, capacity, category=category
            )
            logger.warning(
                LogMessages.capacity_exceeded(
                    category=str(category),
                    collection_id=collection_id,
                    current=current,
                    adding=group.songs_to_add,
                    capacity=capacity,
                )
            )
            return group

        if overflow > 0:
            group.state = GroupState.EVICTING
            try:
                await self._evict_oldest(group, current, overflow)
            except WriteError as e:
                return self._fail(group, e)

        group.state = GroupState.INSERTING
        try:
            await self._insert(group)
        except WriteError as e:
            return self._fail(group, e)

        group.state = GroupState.DONE
        if group.inserted:
            logger.info(
                LogMessages.group_curated(
                    category=str(category),
                    collection_id=collection_id,
                    releases=len(group.releases),
                    tracks=group.inserted,
                    chunks=len(group.chunks),
                )
            )
        return group

    # Listen up, eviction is an explicit loop, never recursion. Every chunk removes up to item_limit
    # items from the current BOTTOM, so the offset is recomputed from the shrinking count each time.
    # Example: 9995 items, 10 to add, capacity 10000 → one call evict(offset=9990, count=5).
    async def _evict_oldest(self, group: GroupResult, current: int, overflow: int) -> None:
        limit = self._settings.item_limit
        remaining = current
        to_evict = overflow
        calls = 0
        while to_evict > 0:
            chunk = min(to_evict, limit)
            offset = remaining - chunk
            try:
                await self._collections.evict_from_bottom(group.collection_id, offset, chunk)
            except Exception as e:
                raise WriteError(
                    group.collection_id, "evict", e, category=group.category
                ) from e
            remaining -= chunk
            to_evict -= chunk
            group.evicted += chunk
            calls += 1
        logger.info(
            LogMessages.eviction_performed(
                category=str(group.category),
                collection_id=group.collection_id,
                evicted=group.evicted,
                chunks=calls,
            )
        )

    def _plan_chunks(self, releases: Sequence[Release]) -> list[list[str]]:
        limit = self._settings.item_limit
        if self._settings.batching_policy is BatchingPolicy.BUNDLED:
            track_ids = [track_id for release in releases for track_id in release.track_ids]
            return [track_ids[i : i + limit] for i in range(0, len(track_ids), limit)]

        chunks: list[list[str]] = []
        for release in releases:
            track_ids = release.track_ids
            chunks.extend(track_ids[i : i + limit] for i in range(0, len(track_ids), limit))
        return chunks

    async def _insert(self, group: GroupResult) -> None:
        # Strict: delay between consecutive chunks only, never before the first. Bundled: no delay.
        strict = self._settings.batching_policy is BatchingPolicy.STRICT
        delay = self._settings.inter_chunk_delay_seconds
        for index, chunk in enumerate(self._plan_chunks(group.releases)):
            if strict and index > 0 and delay > 0:
                await self._sleep(delay)
            try:
                await self._collections.insert_at_top(
                    group.collection_id, chunk, self._settings.item_limit
                )
            except Exception as e:
                raise WriteError(
                    group.collection_id, "insert", e, category=group.category
                ) from e
            group.chunks.append(len(chunk))
            group.inserted += len(chunk)

    def _fail(self, group: GroupResult, error: WriteError) -> GroupResult:
        group.error = error
        logger.error(
            LogMessages.collection_write_failed(
                category=str(group.category),
                collection_id=group.collection_id,
                operation=error.operation,
                error=str(error.cause or error.message),
                state=str(group.state),
            )
        )
        return group


__all__ = [
    "INERT_NO_TARGET",
    "CollectionCurator",
    "CurationResult",
    "GroupResult",
    "GroupState",
]
