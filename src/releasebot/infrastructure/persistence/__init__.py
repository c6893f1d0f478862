"""Persistence layer - database, ORM models and the SQL key/value store."""

from releasebot.infrastructure.persistence.database import Database
from releasebot.infrastructure.persistence.kv_store import SqlKeyValueStore

__all__ = [
    "Database",
    "SqlKeyValueStore",
]
