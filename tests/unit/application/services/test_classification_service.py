"""Unit tests for ClassificationService."""

import pytest

from fakes import make_release
from releasebot.application.services.classification_service import (
    INERT_BLACKLISTED,
    ClassificationService,
)
from releasebot.config import ClassificationSettings
from releasebot.domain.entities import Blacklist
from releasebot.domain.value_objects.release_categories import BaseCategory, ExtendedCategory
from releasebot.domain.value_objects.remap_rules import RemapperKind

MINUTE_MS = 60_000


@pytest.fixture
def remix_ep():
    """A 6-track single full of remixes - qualifies as EP and as REMIX."""
    return make_release(
        "r1",
        "Blue (Remixes)",
        BaseCategory.SINGLE,
        track_count=6,
        duration_ms=4 * MINUTE_MS,
    )


class TestClassify:
    """Tests for classify()."""

    def test_no_match_keeps_base(self) -> None:
        service = ClassificationService()
        release = make_release("r1", "Plain", BaseCategory.COMPILATION, track_count=10)
        assert service.classify(release) == ExtendedCategory.COMPILATION

    def test_first_matching_rule_wins(self, remix_ep) -> None:
        ep_first = ClassificationService(order=[RemapperKind.EP, RemapperKind.REMIX])
        remix_first = ClassificationService(order=[RemapperKind.REMIX, RemapperKind.EP])
        assert ep_first.classify(remix_ep) == ExtendedCategory.EP
        assert remix_first.classify(remix_ep) == ExtendedCategory.REMIX

    def test_disabled_rule_is_skipped(self, remix_ep) -> None:
        service = ClassificationService(
            order=[RemapperKind.REMIX, RemapperKind.EP], enabled=[RemapperKind.EP]
        )
        assert service.active_rules == [RemapperKind.EP]
        assert service.classify(remix_ep) == ExtendedCategory.EP

    def test_rule_not_applying_to_base_is_ignored(self) -> None:
        """An album with 12 tracks is never an EP."""
        service = ClassificationService(order=[RemapperKind.EP])
        album = make_release("r1", "Midnight EP", BaseCategory.ALBUM, track_count=12)
        assert service.classify(album) == ExtendedCategory.ALBUM

    def test_all_disabled_returns_base(self, remix_ep) -> None:
        service = ClassificationService(enabled=[])
        assert service.classify(remix_ep) == ExtendedCategory.SINGLE

    def test_from_settings_uses_flags_and_order(self, remix_ep) -> None:
        settings = ClassificationSettings(
            ep_separation=True, remix_separation=True, remapper_order=["remix", "ep"]
        )
        service = ClassificationService.from_settings(settings)
        assert service.active_rules == [RemapperKind.REMIX, RemapperKind.EP]
        assert service.classify(remix_ep) == ExtendedCategory.REMIX

    def test_default_settings_only_separate_eps(self) -> None:
        service = ClassificationService.from_settings(ClassificationSettings())
        assert service.active_rules == [RemapperKind.EP]


class TestClassifyAll:
    """Tests for classify_all() and the blacklist gate."""

    def test_dissenting_artist_keeps_release_curated(self) -> None:
        """Artist A blacklists EP, artist B doesn't → still curated as EP."""
        blacklist = Blacklist.from_mapping({"artist-a": [ExtendedCategory.EP]})
        service = ClassificationService(order=[RemapperKind.EP], blacklist=blacklist)
        release = make_release(
            "r1",
            "Midnight EP",
            BaseCategory.SINGLE,
            artists=["artist-a", "artist-b"],
            track_count=2,
        )

        [item] = service.classify_all([release])

        assert item.category == ExtendedCategory.EP
        assert not item.inert

    def test_unanimous_blacklist_marks_inert(self) -> None:
        blacklist = Blacklist.from_mapping(
            {"artist-a": [ExtendedCategory.EP], "artist-b": [ExtendedCategory.EP]}
        )
        service = ClassificationService(order=[RemapperKind.EP], blacklist=blacklist)
        release = make_release(
            "r1",
            "Midnight EP",
            BaseCategory.SINGLE,
            artists=["artist-a", "artist-b"],
            track_count=2,
        )

        [item] = service.classify_all([release])

        assert item.inert
        assert item.inert_reason == INERT_BLACKLISTED
        assert item.category == ExtendedCategory.EP

    def test_blacklist_checks_effective_category(self) -> None:
        """Blacklisting SINGLE doesn't hide a single that became an EP."""
        blacklist = Blacklist.from_mapping({"artist-a": [ExtendedCategory.SINGLE]})
        service = ClassificationService(order=[RemapperKind.EP], blacklist=blacklist)
        ep = make_release("r1", "Midnight EP", BaseCategory.SINGLE, artists=["artist-a"])
        single = make_release("r2", "Hit", BaseCategory.SINGLE, artists=["artist-a"], track_count=1)

        items = service.classify_all([ep, single])

        assert [(i.category, i.inert) for i in items] == [
            (ExtendedCategory.EP, False),
            (ExtendedCategory.SINGLE, True),
        ]
