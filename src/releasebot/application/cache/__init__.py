"""Caching layer - identity cache and the in-memory key/value store."""

from releasebot.application.cache.identity_cache import IdentityCache
from releasebot.application.cache.memory_store import InMemoryKeyValueStore

__all__ = [
    "IdentityCache",
    "InMemoryKeyValueStore",
]
