"""Engine lifecycle - wiring, startup and shutdown.

The embedding application supplies the three catalog adapters (release listing, track listing,
collection read/write) and gets back a ready DiscoverReleasesUseCase for the duration of the
context. Everything else (settings, logging, database, executor) is built here.

Usage:
    async with engine_lifespan(release_provider, track_provider, collection_provider) as use_case:
        response = await use_case.execute(DiscoverReleasesRequest(followed_artist_ids=ids))
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.services.classification_service import ClassificationService
from releasebot.application.services.collection_curator import CollectionCurator
from releasebot.application.services.collection_targets import CollectionTargetRegistry
from releasebot.application.services.track_fetch_service import TrackFetchService
from releasebot.application.use_cases.discover_releases import DiscoverReleasesUseCase
from releasebot.config import Settings, get_settings
from releasebot.domain.entities import Blacklist
from releasebot.domain.exceptions import ConfigurationError
from releasebot.domain.ports import (
    ICollectionProvider,
    IKeyValueStore,
    IReleaseProvider,
    ITaskExecutor,
    ITrackProvider,
)
from releasebot.infrastructure.observability import configure_logging
from releasebot.infrastructure.persistence import Database, SqlKeyValueStore
from releasebot.infrastructure.task_executor import BoundedTaskExecutor

logger = logging.getLogger(__name__)


# Hey future me, this validates SQLite paths BEFORE we create the DB engine! SQLite needs to create
# temp files (-journal, -wal) next to the .db file, so the parent directory must exist and be
# writable. We DON'T pre-create the .db file - SQLite initializes it properly on first connect.
# Returns early for in-memory and non-SQLite URLs.
def _validate_sqlite_path(settings: Settings) -> None:
    """Validate SQLite database path accessibility before engine creation."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update RELEASEBOT_DATABASE__URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite requires write permissions to create database and journal files."
        ) from exc


def build_discovery_use_case(
    settings: Settings,
    store: IKeyValueStore,
    executor: ITaskExecutor,
    release_provider: IReleaseProvider,
    track_provider: ITrackProvider,
    collection_provider: ICollectionProvider,
) -> DiscoverReleasesUseCase:
    """Wire all services of a discovery run from settings."""
    identity_cache = IdentityCache(store)
    return DiscoverReleasesUseCase(
        release_provider=release_provider,
        identity_cache=identity_cache,
        track_fetch_service=TrackFetchService(track_provider, executor),
        classification_service=ClassificationService.from_settings(
            settings.classification,
            blacklist=Blacklist.from_mapping(settings.blacklist),
        ),
        curator=CollectionCurator(collection_provider, identity_cache, settings.curation),
        targets=CollectionTargetRegistry(settings.targets, store),
        executor=executor,
        curation_settings=settings.curation,
        cache_settings=settings.cache,
    )


# Listen future me, everything before `yield` is STARTUP, everything after is SHUTDOWN. The
# try/finally makes sure pending executor tasks are cancelled and the engine disposed even if
# the caller's run blows up.
@asynccontextmanager
async def engine_lifespan(
    release_provider: IReleaseProvider,
    track_provider: ITrackProvider,
    collection_provider: ICollectionProvider,
    settings: Settings | None = None,
) -> AsyncGenerator[DiscoverReleasesUseCase, None]:
    """Start the engine, yield a wired use case, and clean up afterwards."""
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.json_format,
    )

    _validate_sqlite_path(settings)
    database = Database(settings.database)
    executor = BoundedTaskExecutor.from_settings(settings.fetch)
    try:
        await database.create_tables()
        logger.info("Database ready: %s", settings.database.url)

        yield build_discovery_use_case(
            settings,
            SqlKeyValueStore(database),
            executor,
            release_provider,
            track_provider,
            collection_provider,
        )
    finally:
        await executor.shutdown()
        await database.close()
        logger.info("Engine shut down")


__all__ = ["build_discovery_use_case", "engine_lifespan"]
