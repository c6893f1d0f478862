"""Registry of destination collections per extended category."""

import logging
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime, timedelta

from releasebot.domain.entities import CollectionTarget
from releasebot.domain.ports import IKeyValueStore
from releasebot.domain.value_objects.release_categories import ExtendedCategory

logger = logging.getLogger(__name__)


def last_update_key(category: ExtendedCategory) -> str:
    return f"target.{category.value}.last_update"


# Listen, the KEY SET is fixed at construction: one target per ExtendedCategory, configured or not.
# Only last_update ever changes at runtime, and every change is written straight through to the
# store so a crash between groups doesn't lose the timestamp of a group that did finish.
class CollectionTargetRegistry:
    """Holds one CollectionTarget per extended category."""

    def __init__(
        self,
        collection_ids: Mapping[ExtendedCategory, str | None],
        store: IKeyValueStore,
    ) -> None:
        self._store = store
        self._targets: dict[ExtendedCategory, CollectionTarget] = {
            category: CollectionTarget(
                category=category, collection_id=collection_ids.get(category)
            )
            for category in ExtendedCategory
        }

    def get(self, category: ExtendedCategory) -> CollectionTarget:
        return self._targets[category]

    def __iter__(self) -> Iterator[CollectionTarget]:
        return iter(self._targets.values())

    def configured(self) -> list[CollectionTarget]:
        return [target for target in self._targets.values() if target.is_configured]

    async def load_timestamps(self) -> None:
        """Read every target's last_update from the store."""
        for category, target in self._targets.items():
            raw = await self._store.get_value(last_update_key(category))
            target.last_update = None
            if raw:
                try:
                    parsed = datetime.fromisoformat(raw)
                except ValueError:
                    logger.warning("Ignoring unparseable last_update %r for %s", raw, category)
                    continue
                target.last_update = parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    async def mark_updated(
        self, category: ExtendedCategory, now: datetime | None = None
    ) -> CollectionTarget:
        """Record that the category's collection was fully written."""
        target = self._targets[category]
        target.last_update = now or datetime.now(UTC)
        await self._store.set_value(last_update_key(category), target.last_update.isoformat())
        return target

    # Hey future me - this is the "new releases" badge expiry. A collection that got new items more
    # than `timeout` ago is no longer "fresh", so its timestamp is cleared (the outer surface uses
    # it to decide what to highlight). Returns the categories that were cleared.
    async def expire_stale(self, now: datetime, timeout: timedelta) -> list[ExtendedCategory]:
        """Clear last_update of every target older than `timeout`."""
        expired: list[ExtendedCategory] = []
        for category, target in self._targets.items():
            if target.last_update is not None and now - target.last_update >= timeout:
                target.last_update = None
                await self._store.delete_value(last_update_key(category))
                expired.append(category)
        if expired:
            logger.debug("Expired last_update of %s", ", ".join(str(c) for c in expired))
        return expired


__all__ = ["CollectionTargetRegistry", "last_update_key"]
