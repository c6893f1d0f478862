"""SQL-backed IKeyValueStore."""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select

from releasebot.domain.ports import IKeyValueStore
from releasebot.infrastructure.persistence.database import Database
from releasebot.infrastructure.persistence.models import (
    CacheMemberModel,
    KeyValueModel,
    utc_now,
)
from releasebot.infrastructure.persistence.retry import with_db_retry

logger = logging.getLogger(__name__)


# Hey future me - every method opens its OWN session_scope, so each call is one transaction. That's
# what the identity cache needs: a commit() either fully lands or fully rolls back. The store is
# shared by the identity cache and the target registry; the cache's asyncio.Lock serializes its
# own writes, SQLite serializes the rest.
class SqlKeyValueStore(IKeyValueStore):
    """IKeyValueStore persisted via SQLAlchemy (SQLite by default)."""

    def __init__(self, database: Database) -> None:
        self._database = database

    @with_db_retry()
    async def get_members(self, namespace: str) -> set[str]:
        async with self._database.session_scope() as session:
            result = await session.execute(
                select(CacheMemberModel.member).where(CacheMemberModel.namespace == namespace)
            )
            return set(result.scalars().all())

    @with_db_retry()
    async def add_members(self, namespace: str, members: Iterable[str]) -> int:
        wanted = set(members)
        if not wanted:
            return 0
        async with self._database.session_scope() as session:
            # Whole namespace instead of IN (...) - keeps clear of SQLite's bound parameter limit
            result = await session.execute(
                select(CacheMemberModel.member).where(CacheMemberModel.namespace == namespace)
            )
            new_members = wanted - set(result.scalars().all())
            session.add_all(
                CacheMemberModel(namespace=namespace, member=member)
                for member in sorted(new_members)
            )
        return len(new_members)

    @with_db_retry()
    async def replace_members(self, namespace: str, members: Iterable[str]) -> None:
        wanted = set(members)
        async with self._database.session_scope() as session:
            await session.execute(
                delete(CacheMemberModel).where(CacheMemberModel.namespace == namespace)
            )
            session.add_all(
                CacheMemberModel(namespace=namespace, member=member) for member in sorted(wanted)
            )

    @with_db_retry()
    async def get_value(self, key: str) -> str | None:
        async with self._database.session_scope() as session:
            model = await session.get(KeyValueModel, key)
            return model.value if model else None

    @with_db_retry()
    async def set_value(self, key: str, value: str) -> None:
        async with self._database.session_scope() as session:
            model = await session.get(KeyValueModel, key)
            if model is None:
                session.add(KeyValueModel(key=key, value=value))
            else:
                model.value = value
                model.updated_at = utc_now()

    @with_db_retry()
    async def delete_value(self, key: str) -> bool:
        async with self._database.session_scope() as session:
            model = await session.get(KeyValueModel, key)
            if model is None:
                return False
            await session.delete(model)
            return True


__all__ = ["SqlKeyValueStore"]
