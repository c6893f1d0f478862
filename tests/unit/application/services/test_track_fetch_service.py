"""Unit tests for TrackFetchService."""

import asyncio

from fakes import FakeTrackProvider, make_release, make_tracks
from releasebot.application.services.track_fetch_service import TrackFetchService
from releasebot.domain.entities import Track
from releasebot.domain.exceptions import FetchError
from releasebot.infrastructure.task_executor import BoundedTaskExecutor


class TestFetchTracks:
    """Tests for fetch_tracks()."""

    async def test_attaches_tracks_in_input_order(self) -> None:
        releases = [make_release(f"r{i}") for i in range(3)]
        provider = FakeTrackProvider({r.id: make_tracks(r.id, 2) for r in releases})
        service = TrackFetchService(provider, BoundedTaskExecutor(max_concurrency=2))

        result = await service.fetch_tracks(releases)

        assert [r.id for r in result.releases] == ["r0", "r1", "r2"]
        assert all(r.track_count == 2 for r in result.releases)
        assert result.failures == []

    async def test_one_failure_does_not_affect_others(self) -> None:
        """5 fetches, 1 fails → 4 releases with tracks and 1 FetchError."""
        releases = [make_release(f"r{i}") for i in range(5)]
        provider = FakeTrackProvider(
            {r.id: make_tracks(r.id, 3) for r in releases}, failing=["r2"]
        )
        service = TrackFetchService(provider, BoundedTaskExecutor(max_concurrency=4))

        result = await service.fetch_tracks(releases)

        assert [r.id for r in result.releases] == ["r0", "r1", "r3", "r4"]
        assert len(result.failures) == 1
        error = result.failures[0]
        assert isinstance(error, FetchError)
        assert error.release_id == "r2"
        assert isinstance(error.cause, ConnectionError)
        assert result.failed_release_ids == ["r2"]

    async def test_empty_input_skips_executor(self) -> None:
        provider = FakeTrackProvider()
        service = TrackFetchService(provider, BoundedTaskExecutor())
        result = await service.fetch_tracks([])
        assert result.releases == []
        assert provider.calls == []

    async def test_deadline_reports_slow_fetches(self) -> None:
        class SlowProvider(FakeTrackProvider):
            async def get_tracks(self, release_id: str) -> list[Track]:
                if release_id == "slow":
                    await asyncio.sleep(10)
                return await super().get_tracks(release_id)

        releases = [make_release("fast"), make_release("slow")]
        service = TrackFetchService(
            SlowProvider({"fast": make_tracks("fast", 1)}),
            BoundedTaskExecutor(deadline_seconds=0.05),
        )

        result = await service.fetch_tracks(releases)

        assert [r.id for r in result.releases] == ["fast"]
        assert result.failed_release_ids == ["slow"]
        assert isinstance(result.failures[0].cause, TimeoutError)
