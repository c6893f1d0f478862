"""Unit tests for DiscoverReleasesUseCase - full runs against in-memory fakes."""

from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, timedelta

from fakes import (
    FakeCollectionProvider,
    FakeReleaseProvider,
    FakeTrackProvider,
    RecordingSleep,
    make_release,
    make_tracks,
)
from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.cache.memory_store import InMemoryKeyValueStore
from releasebot.application.services.classification_service import (
    INERT_BLACKLISTED,
    ClassificationService,
)
from releasebot.application.services.collection_curator import CollectionCurator
from releasebot.application.services.collection_targets import CollectionTargetRegistry
from releasebot.application.services.track_fetch_service import TrackFetchService
from releasebot.application.use_cases import (
    DiscoverReleasesRequest,
    DiscoverReleasesUseCase,
)
from releasebot.application.use_cases.discover_releases import INERT_NEW_ARTIST_BACKLOG
from releasebot.config import CacheSettings, CurationSettings
from releasebot.domain.entities import Blacklist, Release
from releasebot.domain.exceptions import CurationError, FetchError
from releasebot.domain.value_objects.release_categories import BaseCategory, ExtendedCategory
from releasebot.infrastructure.task_executor import BoundedTaskExecutor

NOW = datetime(2024, 5, 2, 12, 0, tzinfo=UTC)
FOLLOWED = ["artist-1", "artist-2"]
TARGETS = {ExtendedCategory.ALBUM: "albums", ExtendedCategory.EP: "eps"}


class Harness:
    """Wires a use case the same way the lifespan does, but with fakes."""

    def __init__(
        self,
        releases: Sequence[Release] = (),
        store: InMemoryKeyValueStore | None = None,
        failing: Iterable[str] = (),
        listing_error: Exception | None = None,
        blacklist: Blacklist | None = None,
        curation: CurationSettings | None = None,
        cache: CacheSettings | None = None,
    ) -> None:
        self.store = store or InMemoryKeyValueStore()
        self.releases = FakeReleaseProvider(releases, error=listing_error)
        self.tracks = FakeTrackProvider(
            {r.id: make_tracks(r.id, 2) for r in releases}, failing=failing
        )
        self.collections = FakeCollectionProvider()
        self.sleep = RecordingSleep()
        self.identity_cache = IdentityCache(self.store)
        self.targets = CollectionTargetRegistry(TARGETS, self.store)
        curation = curation or CurationSettings()
        executor = BoundedTaskExecutor(max_concurrency=2)
        self.use_case = DiscoverReleasesUseCase(
            release_provider=self.releases,
            identity_cache=self.identity_cache,
            track_fetch_service=TrackFetchService(self.tracks, executor),
            classification_service=ClassificationService(blacklist=blacklist),
            curator=CollectionCurator(
                self.collections, self.identity_cache, curation, sleep=self.sleep
            ),
            targets=self.targets,
            executor=executor,
            curation_settings=curation,
            cache_settings=cache or CacheSettings(),
        )

    async def run(self, now: datetime = NOW, followed: Sequence[str] = FOLLOWED, **kwargs):
        return await self.use_case.execute(
            DiscoverReleasesRequest(followed_artist_ids=list(followed), now=now, **kwargs)
        )


class TestHappyPath:
    """A clean run from listing to commit."""

    async def test_curates_and_commits_new_releases(self) -> None:
        harness = Harness([make_release("r1"), make_release("r2", artists=("artist-2",))])

        response = await harness.run(correlation_id="run-1")

        assert response.correlation_id == "run-1"
        assert response.candidates == 2
        assert {r.id for r in response.curated_releases} == {"r1", "r2"}
        assert {r.id for r in response.committed_releases} == {"r1", "r2"}
        assert response.errors == []
        assert len(harness.collections.items["albums"]) == 4
        assert harness.targets.get(ExtendedCategory.ALBUM).last_update == NOW

    async def test_second_run_skips_known_releases(self) -> None:
        harness = Harness([make_release("r1")])
        await harness.run()

        response = await harness.run()

        assert response.new_releases == []
        assert len(harness.collections.inserts) == 1
        assert harness.tracks.calls == ["r1"]

    async def test_reissue_with_new_id_is_recognized(self) -> None:
        harness = Harness([make_release("r1", title="Blue")])
        await harness.run()
        harness.releases.releases = [make_release("r1-reissue", title="BLUE")]

        response = await harness.run()

        assert response.new_releases == []

    async def test_ep_lands_in_its_own_collection(self) -> None:
        harness = Harness([make_release("s1", title="Midnight EP", base=BaseCategory.SINGLE)])

        response = await harness.run()

        assert response.classified[0].category is ExtendedCategory.EP
        assert harness.collections.items["eps"] == ["s1-t1", "s1-t2"]

    async def test_album_and_same_named_single_both_curated(self) -> None:
        harness = Harness(
            [
                make_release("a1", title="Midnight"),
                make_release("s1", title="Midnight - Single", base=BaseCategory.SINGLE),
            ]
        )
        harness.targets.get(ExtendedCategory.SINGLE).collection_id = "singles"

        response = await harness.run()

        assert {r.id for r in response.curated_releases} == {"a1", "s1"}
        assert harness.collections.items["albums"] == ["a1-t1", "a1-t2"]
        assert harness.collections.items["singles"] == ["s1-t1", "s1-t2"]


class TestPartialFailure:
    """Failures are reported next to successes."""

    async def test_failed_fetch_is_reported_and_not_committed(self) -> None:
        releases = [make_release(f"r{i}") for i in range(5)]
        harness = Harness(releases, failing=["r3"])

        response = await harness.run()

        assert len(response.fetch_result.releases) == 4
        assert [type(e) for e in response.errors] == [FetchError]
        assert "r3" not in {r.id for r in response.committed_releases}
        assert not harness.identity_cache.is_release_known(releases[3])

        # Next run picks it up again
        harness.tracks.failing.clear()
        retry = await harness.run()
        assert [r.id for r in retry.committed_releases] == ["r3"]

    async def test_listing_failure_is_recorded(self) -> None:
        harness = Harness(listing_error=ConnectionError("catalog down"))

        response = await harness.run()

        assert response.candidates == 0
        assert len(response.errors) == 1
        assert isinstance(response.errors[0], CurationError)
        assert "catalog down" in response.errors[0].message

    async def test_blacklisted_release_is_committed_without_curation(self) -> None:
        blacklist = Blacklist.from_mapping({"artist-1": [ExtendedCategory.ALBUM]})
        harness = Harness([make_release("r1")], blacklist=blacklist)

        response = await harness.run()

        assert response.classified[0].inert_reason == INERT_BLACKLISTED
        assert harness.collections.inserts == []
        assert [r.id for r in response.committed_releases] == ["r1"]


class TestLookback:
    """Release date filtering."""

    async def test_old_releases_are_dropped_and_undated_kept(self) -> None:
        harness = Harness(
            [
                make_release("old", release_date=date(2024, 4, 1)),
                make_release("recent", release_date=date(2024, 4, 30)),
                make_release("undated", release_date=None),
            ]
        )

        response = await harness.run()

        assert {r.id for r in response.new_releases} == {"recent", "undated"}


class TestArtistCache:
    """Known-artist set refresh and new-artist backlog."""

    async def test_first_run_refreshes_and_curates_everything(self) -> None:
        harness = Harness([make_release("r1")])

        response = await harness.run()

        assert response.artist_cache_refreshed
        assert harness.identity_cache.known_artist_ids == frozenset(FOLLOWED)
        assert harness.identity_cache.artist_cache_last_refreshed == NOW
        assert [r.id for r in response.curated_releases] == ["r1"]

    async def test_newly_followed_artist_backlog_is_not_curated(self) -> None:
        harness = Harness()
        await harness.run()
        harness.releases.releases = [
            make_release("known", artists=("artist-1",)),
            make_release("backlog", artists=("artist-9",)),
            make_release("collab", artists=("artist-9", "artist-2")),
        ]

        response = await harness.run(
            now=NOW + timedelta(hours=1), followed=[*FOLLOWED, "artist-9"]
        )

        inert = {c.release.id: c.inert_reason for c in response.classified if c.inert}
        assert inert == {"backlog": INERT_NEW_ARTIST_BACKLOG}
        assert {r.id for r in response.curated_releases} == {"known", "collab"}
        assert {r.id for r in response.committed_releases} == {"known", "collab", "backlog"}
        assert "backlog" not in harness.tracks.calls
        # TTL not expired yet, artist-9 is still unknown
        assert not response.artist_cache_refreshed

    async def test_backlog_check_can_be_disabled(self) -> None:
        harness = Harness(cache=CacheSettings(skip_new_artist_backlog=False))
        await harness.run()
        harness.releases.releases = [make_release("r1", artists=("artist-9",))]

        response = await harness.run(now=NOW + timedelta(hours=1))

        assert [r.id for r in response.curated_releases] == ["r1"]

    async def test_refresh_failure_is_reported(self) -> None:
        class BrokenStore(InMemoryKeyValueStore):
            async def replace_members(self, namespace: str, members: Iterable[str]) -> None:
                raise RuntimeError("disk full")

        harness = Harness([make_release("r1")], store=BrokenStore())

        response = await harness.run()

        assert not response.artist_cache_refreshed
        assert isinstance(response.artist_refresh_error, RuntimeError)
        assert [r.id for r in response.committed_releases] == ["r1"]


class TestNotificationExpiry:
    """Expiry of last_update timestamps."""

    async def test_stale_timestamp_is_cleared(self) -> None:
        harness = Harness()
        await harness.targets.mark_updated(ExtendedCategory.ALBUM, NOW - timedelta(days=5))

        response = await harness.run()

        assert response.expired_targets == [ExtendedCategory.ALBUM]
        assert harness.targets.get(ExtendedCategory.ALBUM).last_update is None

    async def test_zero_timeout_disables_expiry(self) -> None:
        harness = Harness(curation=CurationSettings(new_notification_timeout_days=0))
        await harness.targets.mark_updated(ExtendedCategory.ALBUM, NOW - timedelta(days=5))

        response = await harness.run()

        assert response.expired_targets == []
        assert harness.targets.get(ExtendedCategory.ALBUM).last_update is not None
