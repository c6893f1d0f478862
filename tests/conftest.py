"""Shared fixtures."""

import pytest

from fakes import FakeCollectionProvider, RecordingSleep
from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.cache.memory_store import InMemoryKeyValueStore
from releasebot.config import CacheSettings, CurationSettings


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def identity_cache(store: InMemoryKeyValueStore) -> IdentityCache:
    return IdentityCache(store)


@pytest.fixture
def collections() -> FakeCollectionProvider:
    return FakeCollectionProvider()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def curation_settings() -> CurationSettings:
    return CurationSettings()


@pytest.fixture
def cache_settings() -> CacheSettings:
    return CacheSettings()
