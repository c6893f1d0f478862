"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). The *args lets subclasses pass extra context. This is your base class -
    # DON'T raise it directly! Always use a specific subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Raised when an entity is constructed with data that breaks its invariants
    (empty artist set, negative duration, etc.).

    Example:
        raise ValidationError("Release abc123 has no artists")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised (or recorded) when configuration is missing or invalid - most commonly a
    category that has matching releases but no destination collection. In a curation run
    that case is NOT fatal: the releases are treated as inert.

    Example:
        raise ConfigurationError("No collection configured for category 'live'")
    """

    def __init__(self, message: str, category: Any = None) -> None:
        super().__init__(message)
        self.category = category


# =============================================================================
# Curation run errors
# Hey future me - NONE of these are process-fatal! They get collected into the run result
# (CurationResult / DiscoverReleasesResponse) next to whatever partial progress succeeded.
# Release-level errors never abort other releases, group-level errors never abort other groups.
# =============================================================================


class CurationError(DomainException):
    """Base class for errors reported by a discovery/curation run."""

    def __init__(
        self,
        message: str,
        release_id: str | None = None,
        category: Any = None,
    ) -> None:
        super().__init__(message)
        self.release_id = release_id
        self.category = category


class FetchError(CurationError):
    """Track listing for a single release could not be fetched.

    Per-release and non-fatal. The release is NOT committed to the identity cache,
    so it is picked up again on the next run.
    """

    def __init__(self, release_id: str, cause: BaseException | str) -> None:
        reason = cause if isinstance(cause, str) else f"{type(cause).__name__}: {cause}"
        super().__init__(
            f"Fetching tracks of release {release_id} failed: {reason}", release_id=release_id
        )
        self.cause = cause if isinstance(cause, BaseException) else None


class CapacityExceededError(CurationError):
    """A category group doesn't fit into its collection.

    Raised per group when the collection is full and eviction is disabled (or the group alone
    is larger than the whole collection). The group is skipped entirely - no partial insert.
    """

    def __init__(
        self,
        collection_id: str,
        current_count: int,
        songs_to_add: int,
        capacity: int,
        category: Any = None,
    ) -> None:
        super().__init__(
            f"Collection {collection_id} is full: {current_count} + {songs_to_add} "
            f"exceeds capacity {capacity}",
            category=category,
        )
        self.collection_id = collection_id
        self.current_count = current_count
        self.songs_to_add = songs_to_add
        self.capacity = capacity


class WriteError(CurationError):
    """An insert or evict call against a collection failed mid-batch.

    The group is left incomplete and is not retried within the same run. Recovery is the
    next run: the identity cache was never committed for these releases.
    """

    def __init__(
        self,
        collection_id: str,
        operation: str,
        cause: BaseException | str,
        category: Any = None,
    ) -> None:
        reason = cause if isinstance(cause, str) else f"{type(cause).__name__}: {cause}"
        super().__init__(
            f"{operation} on collection {collection_id} failed: {reason}",
            category=category,
        )
        self.collection_id = collection_id
        self.operation = operation
        self.cause = cause if isinstance(cause, BaseException) else None


__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "CurationError",
    "FetchError",
    "CapacityExceededError",
    "WriteError",
]
