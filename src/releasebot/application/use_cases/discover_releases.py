"""Discover releases use case - one full discovery and curation run."""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial

from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.services.classification_service import ClassificationService
from releasebot.application.services.collection_curator import (
    CollectionCurator,
    CurationResult,
)
from releasebot.application.services.collection_targets import CollectionTargetRegistry
from releasebot.application.services.track_fetch_service import (
    TrackFetchResult,
    TrackFetchService,
)
from releasebot.application.use_cases import UseCase
from releasebot.config import CacheSettings, CurationSettings
from releasebot.domain.entities import ClassifiedRelease, Release
from releasebot.domain.exceptions import CurationError
from releasebot.domain.ports import IReleaseProvider, ITaskExecutor
from releasebot.domain.value_objects.release_categories import ExtendedCategory
from releasebot.infrastructure.observability.log_messages import LogMessages
from releasebot.infrastructure.observability.logging import set_correlation_id

logger = logging.getLogger(__name__)

INERT_NEW_ARTIST_BACKLOG = "new_artist_backlog"


@dataclass
class DiscoverReleasesRequest:
    """Request to run one discovery pass."""

    followed_artist_ids: list[str]
    now: datetime | None = None
    correlation_id: str | None = None


@dataclass
class DiscoverReleasesResponse:
    """Response from a discovery pass."""

    correlation_id: str
    candidates: int = 0
    new_releases: list[Release] = field(default_factory=list)
    fetch_result: TrackFetchResult = field(default_factory=TrackFetchResult)
    classified: list[ClassifiedRelease] = field(default_factory=list)
    curation: CurationResult = field(default_factory=CurationResult)
    artist_cache_refreshed: bool = False
    artist_refresh_error: BaseException | None = None
    expired_targets: list[ExtendedCategory] = field(default_factory=list)
    errors: list[CurationError] = field(default_factory=list)

    @property
    def curated_releases(self) -> list[Release]:
        return self.curation.curated_releases

    @property
    def committed_releases(self) -> list[Release]:
        return self.curation.committed


class DiscoverReleasesUseCase(UseCase[DiscoverReleasesRequest, DiscoverReleasesResponse]):
    """Use case for discovering and curating new releases of followed artists.

    This use case:
    1. Loads the identity cache and target timestamps
    2. Schedules an artist cache refresh if it expired
    3. Lists candidate releases and drops those outside the lookback window
    4. Filters out already known releases
    5. Marks back catalogue of newly followed artists inert
    6. Fetches tracks, classifies, curates and commits
    7. Expires stale "new releases" timestamps
    """

    # Hey future me: this is the ONLY place that knows the whole pipeline order. Every step below
    # it is a self-contained service you can test with fakes. Nothing here raises for a single
    # release or group - the response carries everything that went wrong next to what went right.
    def __init__(
        self,
        release_provider: IReleaseProvider,
        identity_cache: IdentityCache,
        track_fetch_service: TrackFetchService,
        classification_service: ClassificationService,
        curator: CollectionCurator,
        targets: CollectionTargetRegistry,
        executor: ITaskExecutor,
        curation_settings: CurationSettings,
        cache_settings: CacheSettings,
    ) -> None:
        """Initialize the use case with required dependencies."""
        self._release_provider = release_provider
        self._identity_cache = identity_cache
        self._track_fetch_service = track_fetch_service
        self._classification_service = classification_service
        self._curator = curator
        self._targets = targets
        self._executor = executor
        self._curation_settings = curation_settings
        self._cache_settings = cache_settings

    async def execute(self, request: DiscoverReleasesRequest) -> DiscoverReleasesResponse:
        """Execute one discovery run."""
        correlation_id = set_correlation_id(request.correlation_id)
        started = time.monotonic()
        now = request.now or datetime.now(UTC)
        response = DiscoverReleasesResponse(correlation_id=correlation_id)
        logger.info(LogMessages.run_started(correlation_id, len(request.followed_artist_ids)))

        await self._identity_cache.load()
        await self._targets.load_timestamps()

        # Snapshot BEFORE the refresh is scheduled - this run judges "new artist" against it
        known_artists = self._identity_cache.known_artist_ids
        refresh_task = None
        if self._identity_cache.artist_cache_expired(now, self._cache_settings.artist_cache_ttl):
            refresh_task = self._executor.submit(
                partial(
                    self._identity_cache.refresh_artist_set,
                    list(request.followed_artist_ids),
                    now,
                )
            )

        try:
            candidates = await self._release_provider.list_candidate_releases(
                request.followed_artist_ids
            )
        except Exception as e:
            logger.error("Listing candidate releases failed: %s", e, exc_info=True)
            response.errors.append(CurationError(f"Listing candidate releases failed: {e}"))
            candidates = []
        response.candidates = len(candidates)

        new_releases = self._identity_cache.filter_new_releases(
            self._within_lookback(candidates, now)
        )
        response.new_releases = new_releases

        backlog, to_fetch = self._split_new_artist_backlog(new_releases, known_artists)

        response.fetch_result = await self._track_fetch_service.fetch_tracks(to_fetch)
        response.errors.extend(response.fetch_result.failures)

        response.classified = [
            *self._classification_service.classify_all(response.fetch_result.releases),
            *backlog,
        ]

        if response.classified:
            response.curation = await self._curator.curate(response.classified, self._targets, now)
            response.errors.extend(response.curation.errors)

        timeout_days = self._curation_settings.new_notification_timeout_days
        if timeout_days > 0:
            response.expired_targets = await self._targets.expire_stale(
                now, self._curation_settings.new_notification_timeout
            )

        if refresh_task is not None:
            try:
                await refresh_task
                response.artist_cache_refreshed = True
                logger.info(LogMessages.artist_cache_refreshed(len(request.followed_artist_ids)))
            except Exception as e:
                response.artist_refresh_error = e
                logger.error(
                    LogMessages.artist_cache_refreshed(0, error=f"{type(e).__name__}: {e}")
                )

        logger.info(
            LogMessages.run_summary(
                candidates=response.candidates,
                new=len(new_releases),
                fetched=len(response.fetch_result.releases),
                fetch_failures=len(response.fetch_result.failures),
                curated=len(response.curated_releases),
                committed=len(response.committed_releases),
                errors=len(response.errors),
                duration_seconds=time.monotonic() - started,
            )
        )
        return response

    def _within_lookback(self, releases: list[Release], now: datetime) -> list[Release]:
        """Drop releases dated before the lookback window (undated ones are kept)."""
        cutoff = (now - self._curation_settings.lookback).date()
        return [r for r in releases if r.release_date is None or r.release_date >= cutoff]

    # Yo, this is what keeps a freshly followed artist with 40 albums from flooding every
    # collection. Only when we ALREADY know some artists - on the very first run everything is
    # "unknown" and would otherwise be skipped entirely.
    def _split_new_artist_backlog(
        self, releases: list[Release], known_artists: frozenset[str]
    ) -> tuple[list[ClassifiedRelease], list[Release]]:
        if not self._cache_settings.skip_new_artist_backlog or not known_artists:
            return [], list(releases)

        backlog: list[ClassifiedRelease] = []
        rest: list[Release] = []
        for release in releases:
            if release.artist_ids.isdisjoint(known_artists):
                backlog.append(
                    ClassifiedRelease(
                        release=release,
                        category=ExtendedCategory.from_base(release.base_category),
                    ).as_inert(INERT_NEW_ARTIST_BACKLOG)
                )
            else:
                rest.append(release)
        if backlog:
            logger.info(
                "Caching %d release(s) of newly followed artists without curating", len(backlog)
            )
        return backlog, rest


__all__ = [
    "DiscoverReleasesRequest",
    "DiscoverReleasesResponse",
    "DiscoverReleasesUseCase",
    "INERT_NEW_ARTIST_BACKLOG",
]
