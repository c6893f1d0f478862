"""Track fetch service - attaches full track listings to newly discovered releases."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import partial

from releasebot.domain.entities import Release
from releasebot.domain.exceptions import FetchError
from releasebot.domain.ports import ITaskExecutor, ITrackProvider

logger = logging.getLogger(__name__)


@dataclass
class TrackFetchResult:
    """Outcome of one fetch pass.

    Attributes:
        releases: Releases with tracks attached, in input order
        failures: One FetchError per release whose fetch failed
    """

    releases: list[Release] = field(default_factory=list)
    failures: list[FetchError] = field(default_factory=list)

    @property
    def failed_release_ids(self) -> list[str]:
        return [error.release_id for error in self.failures if error.release_id]


class TrackFetchService:
    """Fetches track listings for many releases through the bounded executor."""

    def __init__(self, track_provider: ITrackProvider, executor: ITaskExecutor) -> None:
        self._track_provider = track_provider
        self._executor = executor

    async def _fetch_one(self, release: Release) -> Release:
        tracks = await self._track_provider.get_tracks(release.id)
        return release.with_tracks(tracks)

    # Hey future me - all fetches are handed to the executor at once and this call returns only when
    # every one has resolved. A failing fetch doesn't touch the others: it ends up in `failures`
    # and its release is simply absent from `releases`. Callers must NOT commit failed releases!
    async def fetch_tracks(self, releases: Sequence[Release]) -> TrackFetchResult:
        """Fetch tracks of every release, collecting per-release failures."""
        result = TrackFetchResult()
        if not releases:
            return result

        outcomes = await self._executor.run_all(
            [partial(self._fetch_one, release) for release in releases]
        )

        for release, outcome in zip(releases, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                error = FetchError(release.id, outcome)
                logger.warning(error.message)
                result.failures.append(error)
            else:
                result.releases.append(outcome)

        logger.info(
            "Fetched tracks for %d/%d releases (%d failed)",
            len(result.releases),
            len(releases),
            len(result.failures),
        )
        return result


__all__ = ["TrackFetchResult", "TrackFetchService"]
