"""Domain entities."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from releasebot.domain.exceptions import ValidationError
from releasebot.domain.value_objects.release_categories import (
    BaseCategory,
    ExtendedCategory,
)
from releasebot.domain.value_objects.title_normalization import release_fingerprint


# Yo, Track is owned by exactly ONE Release - never share instances between releases. Frozen
# dataclass so nothing downstream can mutate it after the fetch attached it.
@dataclass(frozen=True)
class Track:
    """A single track of a release."""

    id: str
    title: str
    duration_ms: int = 0

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValidationError(f"Track {self.id} has negative duration {self.duration_ms}")


# Hey future me, Release is IMMUTABLE! It is created when the catalog reports it, gets its tracks
# attached once (with_tracks() returns a NEW instance), and is thrown away after one curation pass.
# Durability is the IdentityCache's job, not the Release's. artist_ids is a frozenset - order
# doesn't matter for blacklist checks or fingerprints (the fingerprint sorts them anyway).
@dataclass(frozen=True)
class Release:
    """A discovered catalog release (album, single, compilation, appears_on)."""

    id: str
    title: str
    base_category: BaseCategory
    artist_ids: frozenset[str]
    tracks: tuple[Track, ...] = ()
    release_date: date | None = None

    def __post_init__(self) -> None:
        # Accept any iterable for convenience but store the canonical immutable types
        if not isinstance(self.artist_ids, frozenset):
            object.__setattr__(self, "artist_ids", frozenset(self.artist_ids))
        if not isinstance(self.tracks, tuple):
            object.__setattr__(self, "tracks", tuple(self.tracks))
        if not self.artist_ids:
            raise ValidationError(f"Release {self.id} has no artists")

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def total_duration_ms(self) -> int:
        return sum(track.duration_ms for track in self.tracks)

    @property
    def track_ids(self) -> list[str]:
        return [track.id for track in self.tracks]

    @property
    def fingerprint(self) -> str:
        """Normalized title + artist identifier used to catch reissues with new IDs."""
        return release_fingerprint(self.title, self.artist_ids)

    def with_tracks(self, tracks: Iterable[Track]) -> "Release":
        """Return a copy of this release with the given track listing attached."""
        return replace(self, tracks=tuple(tracks))

    def sort_key(self) -> tuple[date, str]:
        """Release date ascending, tie-broken by id. Undated releases sort first."""
        return (self.release_date or date.min, self.id)


@dataclass(frozen=True)
class ClassifiedRelease:
    """A release together with its effective category.

    inert=True means the release skips curation (blacklisted, no destination, new-artist
    backlog) but still gets committed to the identity cache so it is not reconsidered.
    """

    release: Release
    category: ExtendedCategory
    inert: bool = False
    inert_reason: str | None = None

    def as_inert(self, reason: str) -> "ClassifiedRelease":
        return replace(self, inert=True, inert_reason=reason)


# Listen, CollectionTarget maps ONE category to at most ONE destination collection. A target
# without collection_id is inert: matching releases are dropped from curation (but still cached).
# last_update is the only field that changes at runtime.
@dataclass
class CollectionTarget:
    """Destination collection of an extended category."""

    category: ExtendedCategory
    collection_id: str | None = None
    last_update: datetime | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.collection_id and self.collection_id.strip())

    def __str__(self) -> str:
        return f"CollectionTarget<{self.category}>"


@dataclass(frozen=True)
class BlacklistEntry:
    """Categories a single artist is exempt from."""

    artist_id: str
    categories: frozenset[ExtendedCategory] = field(default_factory=frozenset)

    def blocks(self, category: ExtendedCategory) -> bool:
        return category in self.categories


# Hey future me - blacklist semantics are UNANIMOUS: a release with several artists is blacklisted
# for a category only if EVERY artist on it blacklists that category. One dissenting artist (or an
# artist with no entry at all) keeps the release in. This is conservative toward inclusion - a
# collab between a blacklisted and a non-blacklisted artist still shows up.
class Blacklist:
    """Lookup of per-artist category exemptions."""

    def __init__(self, entries: Iterable[BlacklistEntry] = ()) -> None:
        self._entries: dict[str, BlacklistEntry] = {e.artist_id: e for e in entries}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[ExtendedCategory]]) -> "Blacklist":
        return cls(
            BlacklistEntry(artist_id=artist_id, categories=frozenset(categories))
            for artist_id, categories in mapping.items()
        )

    def get(self, artist_id: str) -> BlacklistEntry | None:
        return self._entries.get(artist_id)

    def blacklisted_categories(self, artist_ids: Iterable[str]) -> frozenset[ExtendedCategory]:
        """Intersection of blacklisted categories across all given artists."""
        result: frozenset[ExtendedCategory] | None = None
        for artist_id in artist_ids:
            entry = self._entries.get(artist_id)
            if entry is None:
                return frozenset()
            result = entry.categories if result is None else result & entry.categories
            if not result:
                return frozenset()
        return result or frozenset()

    def is_blacklisted(self, release: Release, category: ExtendedCategory) -> bool:
        return category in self.blacklisted_categories(release.artist_ids)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "Blacklist",
    "BlacklistEntry",
    "ClassifiedRelease",
    "CollectionTarget",
    "Release",
    "Track",
]
