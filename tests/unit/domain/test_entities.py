"""Unit tests for domain entities."""

from datetime import date

import pytest

from fakes import make_release
from releasebot.domain.entities import (
    Blacklist,
    BlacklistEntry,
    ClassifiedRelease,
    CollectionTarget,
    Release,
    Track,
)
from releasebot.domain.exceptions import ValidationError
from releasebot.domain.value_objects.release_categories import BaseCategory, ExtendedCategory


class TestTrack:
    """Tests for Track."""

    def test_negative_duration_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Track(id="t1", title="Song", duration_ms=-1)


class TestRelease:
    """Tests for Release."""

    def test_requires_at_least_one_artist(self) -> None:
        with pytest.raises(ValidationError):
            Release(id="r1", title="X", base_category=BaseCategory.ALBUM, artist_ids=frozenset())

    def test_coerces_iterables(self) -> None:
        release = Release(
            id="r1",
            title="X",
            base_category=BaseCategory.ALBUM,
            artist_ids=["a", "b", "a"],  # type: ignore[arg-type]
            tracks=[Track(id="t1", title="Song", duration_ms=1000)],  # type: ignore[arg-type]
        )
        assert release.artist_ids == frozenset({"a", "b"})
        assert isinstance(release.tracks, tuple)

    def test_derived_values(self) -> None:
        release = make_release("r1", track_count=3, duration_ms=1000)
        assert release.track_count == 3
        assert release.total_duration_ms == 3000
        assert release.track_ids == ["r1-t1", "r1-t2", "r1-t3"]

    def test_with_tracks_returns_new_instance(self) -> None:
        release = make_release("r1")
        updated = release.with_tracks([Track(id="t1", title="Song")])
        assert release.track_count == 0
        assert updated.track_count == 1
        assert updated.id == release.id

    def test_fingerprint_ignores_edition_markers(self) -> None:
        original = make_release("r1", "Nevermind", artists=["nirvana"])
        reissue = make_release("r2", "Nevermind (Deluxe Edition)", artists=["nirvana"])
        assert original.fingerprint == reissue.fingerprint

    def test_sort_key_orders_by_date_then_id(self) -> None:
        older = make_release("b", release_date=date(2024, 1, 1))
        newer = make_release("a", release_date=date(2024, 2, 1))
        same_day = make_release("c", release_date=date(2024, 1, 1))
        undated = make_release("z", release_date=None)
        ordered = sorted([newer, same_day, undated, older], key=Release.sort_key)
        assert [r.id for r in ordered] == ["z", "b", "c", "a"]


class TestClassifiedRelease:
    """Tests for ClassifiedRelease."""

    def test_as_inert_keeps_category(self) -> None:
        item = ClassifiedRelease(release=make_release("r1"), category=ExtendedCategory.EP)
        inert = item.as_inert("blacklisted")
        assert inert.inert
        assert inert.inert_reason == "blacklisted"
        assert inert.category == ExtendedCategory.EP
        assert not item.inert


class TestCollectionTarget:
    """Tests for CollectionTarget."""

    def test_blank_collection_id_is_not_configured(self) -> None:
        assert not CollectionTarget(ExtendedCategory.LIVE).is_configured
        assert not CollectionTarget(ExtendedCategory.LIVE, collection_id="  ").is_configured
        assert CollectionTarget(ExtendedCategory.LIVE, collection_id="pl1").is_configured


class TestBlacklist:
    """Tests for unanimous blacklist semantics."""

    @pytest.fixture
    def blacklist(self) -> Blacklist:
        return Blacklist.from_mapping(
            {
                "artist-a": [ExtendedCategory.EP, ExtendedCategory.APPEARS_ON],
                "artist-b": [ExtendedCategory.APPEARS_ON],
            }
        )

    def test_single_artist_blacklist(self, blacklist: Blacklist) -> None:
        release = make_release("r1", artists=["artist-a"])
        assert blacklist.is_blacklisted(release, ExtendedCategory.EP)
        assert not blacklist.is_blacklisted(release, ExtendedCategory.ALBUM)

    def test_one_dissenting_artist_keeps_release(self, blacklist: Blacklist) -> None:
        """Artist A blacklists EP, artist B doesn't → not blacklisted."""
        release = make_release("r1", artists=["artist-a", "artist-b"])
        assert not blacklist.is_blacklisted(release, ExtendedCategory.EP)

    def test_all_artists_agree(self, blacklist: Blacklist) -> None:
        release = make_release("r1", artists=["artist-a", "artist-b"])
        assert blacklist.is_blacklisted(release, ExtendedCategory.APPEARS_ON)

    def test_artist_without_entry_dissents(self, blacklist: Blacklist) -> None:
        release = make_release("r1", artists=["artist-a", "artist-c"])
        assert blacklist.blacklisted_categories(release.artist_ids) == frozenset()

    def test_entry_lookup(self, blacklist: Blacklist) -> None:
        entry = blacklist.get("artist-b")
        assert isinstance(entry, BlacklistEntry)
        assert entry.blocks(ExtendedCategory.APPEARS_ON)
        assert blacklist.get("nobody") is None
        assert len(blacklist) == 2
