"""Structured log message templates for consistent, human-readable logging.

Hey future me - This module provides standardized log message templates so a curation run
reads like a report instead of a wall of f-strings:

    ⚠️ Collection Full - Group Skipped
    ├─ Category: ep
    ├─ Collection: 5ABHKGoOzxkaa28ttQV9sE
    ├─ Fill: 9995 + 10 > 10000
    └─ 💡 Enable curation.eviction_enabled or raise curation.collection_capacity

The templates follow these principles:
1. **Icon First** - Visual marker for quick scanning (🔴 = error, ⚠️ = warning, ✅ = success)
2. **Action/Entity** - What failed/succeeded (e.g., "Insert", "Eviction", "Discovery Run")
3. **Context** - Relevant IDs, categories, counts
4. **Hints** - Actionable troubleshooting steps

Usage:
    from releasebot.infrastructure.observability.log_messages import LogMessages

    logger.warning(LogMessages.capacity_exceeded(
        category="ep", collection_id="abc", current=9995, adding=10, capacity=10000,
    ))
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class LogTemplate:
    """A reusable log message template with placeholders.

    Hey future me - format() replaces {placeholders} with kwargs when kwargs are given and
    adds the visual formatting (icon, tree structure, hint). Without kwargs the field values
    are used verbatim, so values containing braces (JSON, sets) are safe.
    """

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def _render(self, text: str, kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return text
        try:
            return text.format(**kwargs)
        except KeyError as e:
            return f"<missing: {e}>"

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Values to fill into template placeholders

        Returns:
            Formatted multi-line log message with icon, title, fields, and optional hint
        """
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            # Last field uses └─ instead of ├─
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"
            lines.append(f"{prefix} {key}: {self._render(value_template, kwargs)}")

        if self.hint:
            lines.append(f"└─ 💡 {self._render(self.hint, kwargs)}")

        return "\n".join(lines)


class LogMessages:
    """Collection of standardized log message templates.

    Template categories:
    - Discovery run lifecycle (start, summary)
    - Collection writes (group curated, eviction, capacity, write failures)
    - Configuration (missing destination)
    - Cache maintenance (artist refresh)
    """

    # === Discovery Run ===

    @staticmethod
    def run_started(correlation_id: str, artists: int) -> str:
        """Format the discovery run start message."""
        return LogTemplate(
            icon="🔄",
            title="Discovery Run Started",
            fields={"Run": correlation_id, "Followed Artists": str(artists)},
        ).format()

    @staticmethod
    def run_summary(
        candidates: int,
        new: int,
        fetched: int,
        fetch_failures: int,
        curated: int,
        committed: int,
        errors: int,
        duration_seconds: float,
    ) -> str:
        """Format the end-of-run summary.

        Example:
            logger.info(LogMessages.run_summary(
                candidates=120, new=5, fetched=5, fetch_failures=0,
                curated=4, committed=5, errors=0, duration_seconds=3.2,
            ))
        """
        icon = "✅" if errors == 0 and fetch_failures == 0 else "⚠️"
        return LogTemplate(
            icon=icon,
            title="Discovery Run Finished",
            fields={
                "Candidates": str(candidates),
                "New": str(new),
                "Tracks Fetched": f"{fetched} ({fetch_failures} failed)",
                "Curated": str(curated),
                "Committed": str(committed),
                "Errors": str(errors),
                "Duration": f"{duration_seconds:.1f}s",
            },
        ).format()

    # === Collection Writes ===

    @staticmethod
    def group_curated(
        category: str, collection_id: str, releases: int, tracks: int, chunks: int
    ) -> str:
        """Format a successful category group insert."""
        return LogTemplate(
            icon="✅",
            title="Collection Updated",
            fields={
                "Category": category,
                "Collection": collection_id,
                "Releases": str(releases),
                "Tracks": f"{tracks} in {chunks} chunk(s)",
            },
        ).format()

    @staticmethod
    def eviction_performed(category: str, collection_id: str, evicted: int, chunks: int) -> str:
        """Format an oldest-first eviction message."""
        return LogTemplate(
            icon="🧹",
            title="Evicted Oldest Items",
            fields={
                "Category": category,
                "Collection": collection_id,
                "Evicted": f"{evicted} in {chunks} chunk(s)",
            },
        ).format()

    @staticmethod
    def capacity_exceeded(
        category: str,
        collection_id: str,
        current: int,
        adding: int,
        capacity: int,
        hint: str | None = None,
    ) -> str:
        """Format a capacity problem that made a group get skipped."""
        default_hint = (
            "Enable curation.eviction_enabled or raise curation.collection_capacity"
            if adding <= capacity
            else "Group alone is larger than the collection; nothing can be inserted"
        )
        return LogTemplate(
            icon="⚠️",
            title="Collection Full - Group Skipped",
            fields={
                "Category": category,
                "Collection": collection_id,
                "Fill": f"{current} + {adding} > {capacity}",
            },
            hint=hint or default_hint,
        ).format()

    @staticmethod
    def collection_write_failed(
        category: str, collection_id: str, operation: str, error: str, state: str
    ) -> str:
        """Format an insert/evict failure in the middle of a group."""
        return LogTemplate(
            icon="🔴",
            title="Collection Write Failed",
            fields={
                "Category": category,
                "Collection": collection_id,
                "Operation": operation,
                "Reason": error,
                "Group State": state,
            },
            hint="Releases of this group stay uncommitted and are retried next run",
        ).format()

    # === Configuration ===

    @staticmethod
    def missing_target(category: str, releases: int) -> str:
        """Format a category with releases but no destination collection."""
        return LogTemplate(
            icon="⚠️",
            title="No Destination Collection",
            fields={"Category": category, "Releases": str(releases)},
            hint=f"Set targets.{category} to curate these; they are cached as inert for now",
        ).format()

    # === Cache Maintenance ===

    @staticmethod
    def artist_cache_refreshed(artists: int, error: str | None = None) -> str:
        """Format the artist cache refresh outcome."""
        if error:
            return LogTemplate(
                icon="🔴",
                title="Artist Cache Refresh Failed",
                fields={"Reason": error},
                hint="The previous artist set stays in use until the next run",
            ).format()
        return LogTemplate(
            icon="✅",
            title="Artist Cache Refreshed",
            fields={"Artists": str(artists)},
        ).format()


__all__ = ["LogMessages", "LogTemplate"]
