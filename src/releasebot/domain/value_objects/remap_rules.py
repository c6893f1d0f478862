"""Remap rules - pure predicates that refine a base category into an extended one.

Hey future me - this is the HEART of classification! Each rule is a plain descriptor:
    kind            → which rule (closed enum, no plugin magic)
    target_category → what the release becomes if the rule fires
    allowed_bases   → which base categories the rule even looks at
    predicate       → pure function Release -> bool

The ClassificationService walks the rules in configured priority order and the FIRST enabled
rule that applies to the base AND matches wins. That's how we guarantee a release is never
double-classified (an "EP of remixes" becomes whichever of EP/REMIX comes first).

Detection thresholds (EP):
1. Title carries an "EP" token (case-sensitive, e.g. "EP", "E.P.")
2. ≥5 tracks
3. ≥20 minutes total
4. ≥3 tracks AND ≥10 minutes AND no title track
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from releasebot.domain.value_objects.release_categories import (
    BaseCategory,
    ExtendedCategory,
)
from releasebot.domain.value_objects.title_normalization import normalize_title

if TYPE_CHECKING:
    from releasebot.domain.entities import Release


class RemapperKind(str, Enum):
    """Closed set of remap rule kinds."""

    EP = "ep"
    REMIX = "remix"
    LIVE = "live"
    RERELEASE = "rerelease"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# EP DETECTION
# Hey future me - the title pattern is CASE-SENSITIVE on purpose! "Deep" or "Step" must not
# match, only the letters E and P as a standalone token, optionally with ONE symbol between and
# after ("EP", "E.P.", "E-P"). The title-track rule exists for short multi-track singles that
# happen to share a name with one of their songs - those are singles, not EPs.
# =============================================================================

EP_TITLE_PATTERN = re.compile(r"\bE\W?P\W?\b")
EP_TRACK_COUNT_THRESHOLD = 5
EP_DURATION_THRESHOLD_MS = 20 * 60 * 1000
EP_TRACK_COUNT_THRESHOLD_LESSER = 3
EP_DURATION_THRESHOLD_LESSER_MS = 10 * 60 * 1000

REMIX_PATTERN = re.compile(r"\b(?:remix(?:es|ed)?|rmx)\b", re.IGNORECASE)
LIVE_PATTERN = re.compile(
    r"(?:[\(\[]\s*live\b[^\)\]]*[\)\]]|\blive\s+(?:at|from|in|on)\b|[-–—]\s*live\b|\bunplugged\b)",
    re.IGNORECASE,
)
RERELEASE_PATTERN = re.compile(
    r"\b(?:remaster(?:ed)?|re-?issue[d]?|re-?release[d]?|anniversary\s+edition|"
    r"deluxe\s+edition|expanded\s+edition)\b",
    re.IGNORECASE,
)

# At least this share of tracks must carry the marker for track-level remix/live detection
TRACK_MAJORITY_RATIO = 0.5


def has_title_track(release: "Release") -> bool:
    """True if any track's normalized title equals the release's normalized title."""
    release_title = normalize_title(release.title)
    return any(normalize_title(track.title) == release_title for track in release.tracks)


def matches_ep(release: "Release") -> bool:
    """Check whether a single qualifies as an EP.

    Any of:
    - "EP" token in the title
    - ≥5 tracks
    - ≥20 minutes
    - ≥3 tracks AND ≥10 minutes AND no title track
    """
    if EP_TITLE_PATTERN.search(release.title or ""):
        return True

    track_count = release.track_count
    total_duration_ms = release.total_duration_ms
    if track_count >= EP_TRACK_COUNT_THRESHOLD or total_duration_ms >= EP_DURATION_THRESHOLD_MS:
        return True

    if (
        track_count >= EP_TRACK_COUNT_THRESHOLD_LESSER
        and total_duration_ms >= EP_DURATION_THRESHOLD_LESSER_MS
    ):
        return not has_title_track(release)

    return False


def _track_majority(release: "Release", pattern: re.Pattern[str]) -> bool:
    if not release.tracks:
        return False
    hits = sum(1 for track in release.tracks if pattern.search(track.title or ""))
    return hits / release.track_count >= TRACK_MAJORITY_RATIO


def matches_remix(release: "Release") -> bool:
    """Remix marker in the title, or on at least half of the tracks."""
    if REMIX_PATTERN.search(release.title or ""):
        return True
    return _track_majority(release, REMIX_PATTERN)


def matches_live(release: "Release") -> bool:
    """Live marker in the title, or on at least half of the tracks."""
    if LIVE_PATTERN.search(release.title or ""):
        return True
    return _track_majority(release, LIVE_PATTERN)


def matches_rerelease(release: "Release") -> bool:
    """Reissue marker (remaster, reissue, anniversary/deluxe edition) in the title."""
    return bool(RERELEASE_PATTERN.search(release.title or ""))


@dataclass(frozen=True)
class RemapRule:
    """Descriptor of one remap rule."""

    kind: RemapperKind
    target_category: ExtendedCategory
    allowed_bases: frozenset[BaseCategory]
    predicate: Callable[["Release"], bool]

    def applies_to_base(self, base: BaseCategory) -> bool:
        return base in self.allowed_bases

    def matches(self, release: "Release") -> bool:
        return self.predicate(release)


DEFAULT_RULES: dict[RemapperKind, RemapRule] = {
    RemapperKind.EP: RemapRule(
        kind=RemapperKind.EP,
        target_category=ExtendedCategory.EP,
        allowed_bases=frozenset([BaseCategory.SINGLE]),
        predicate=matches_ep,
    ),
    RemapperKind.REMIX: RemapRule(
        kind=RemapperKind.REMIX,
        target_category=ExtendedCategory.REMIX,
        allowed_bases=frozenset([BaseCategory.ALBUM, BaseCategory.SINGLE]),
        predicate=matches_remix,
    ),
    RemapperKind.LIVE: RemapRule(
        kind=RemapperKind.LIVE,
        target_category=ExtendedCategory.LIVE,
        allowed_bases=frozenset([BaseCategory.ALBUM, BaseCategory.SINGLE]),
        predicate=matches_live,
    ),
    RemapperKind.RERELEASE: RemapRule(
        kind=RemapperKind.RERELEASE,
        target_category=ExtendedCategory.RERELEASE,
        allowed_bases=frozenset(
            [BaseCategory.ALBUM, BaseCategory.SINGLE, BaseCategory.COMPILATION]
        ),
        predicate=matches_rerelease,
    ),
}

DEFAULT_REMAPPER_ORDER: tuple[RemapperKind, ...] = (
    RemapperKind.EP,
    RemapperKind.LIVE,
    RemapperKind.REMIX,
    RemapperKind.RERELEASE,
)


__all__ = [
    "DEFAULT_REMAPPER_ORDER",
    "DEFAULT_RULES",
    "EP_TITLE_PATTERN",
    "RemapRule",
    "RemapperKind",
    "has_title_track",
    "matches_ep",
    "matches_live",
    "matches_remix",
    "matches_rerelease",
]
