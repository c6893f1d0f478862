"""Release title normalization for fingerprinting and title-track detection.

Hey future me - this module handles the tricky business of recognising the SAME release under
a different name! The catalog happily hands out a brand-new release ID for:
- "Nevermind" vs "Nevermind (Deluxe Edition)"
- "Blue Monday" vs "Blue Monday - 2011 Remaster"
- "Midnight" vs "Midnight - Single"

If we only compared IDs, every reissue would get curated again. So we strip edition markers,
punctuation and whitespace noise and compare the leftovers (the "fingerprint").

Used by:
- IdentityCache (fingerprint set for dedup across new IDs)
- EP remap rule (title-track detection)

Examples:
    >>> from releasebot.domain.value_objects.title_normalization import normalize_title
    >>> normalize_title("Nevermind (Deluxe Edition)")
    'nevermind'
    >>> normalize_title("Blue Monday - 2011 Remaster")
    'blue monday'
    >>> normalize_title("  AC/DC  Live!! ")
    'ac dc live'
"""

import re
from collections.abc import Iterable

# =============================================================================
# EDITION MARKERS
# Hey future me - these patterns eat edition noise from titles. Order matters: bracketed
# markers first, then the dash-suffix style the catalog uses ("- Remastered 2011").
# Keep "version" OUT of here - "(Acoustic Version)" is a genuinely different release!
# =============================================================================

_EDITION_WORDS = r"(?:deluxe|remaster(?:ed)?|expanded|anniversary|edition|bonus(?:\s+tracks?)?)"

EDITION_MARKER_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "(Deluxe)", "[Expanded Edition]", "(2011 Remaster)", "(20th Anniversary Edition)"
    re.compile(rf"[\(\[][^\)\]]*\b{_EDITION_WORDS}\b[^\)\]]*[\)\]]", re.IGNORECASE),
    # "- Remastered 2011", "- 2011 Remaster", "- Deluxe Edition"
    re.compile(
        rf"\s+[-–—]\s+(?:\d{{4}}\s+)?{_EDITION_WORDS}\b.*$",
        re.IGNORECASE,
    ),
    # "- Single", "- EP" (catalog type suffixes)
    re.compile(r"\s+[-–—]\s+(?:single|ep)\s*$", re.IGNORECASE),
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """Normalize a release or track title for comparison.

    Hey future me - this is TOTAL: it never raises. Non-string input gets stringified, and if
    stripping leaves nothing (a title that is ONLY punctuation, like "!!!"), we fall back to
    the lower-cased original so two different punctuation-only titles still differ.

    Args:
        title: Original title (may be None or a non-string from sloppy upstream data)

    Returns:
        Lowercased title without edition markers, punctuation or repeated whitespace

    Examples:
        >>> normalize_title("Midnight - Single")
        'midnight'
        >>> normalize_title("!!!")
        '!!!'
        >>> normalize_title(None)
        ''
    """
    if title is None:
        return ""

    text = title if isinstance(title, str) else str(title)
    lowered = text.lower()

    normalized = lowered
    for pattern in EDITION_MARKER_PATTERNS:
        normalized = pattern.sub(" ", normalized)

    normalized = _PUNCTUATION.sub(" ", normalized)
    normalized = _WHITESPACE.sub(" ", normalized).strip()

    return normalized or lowered.strip() or lowered


def release_fingerprint(title: str | None, artist_ids: Iterable[str]) -> str:
    """Build the dedup fingerprint for a release.

    Artist IDs are sorted so the fingerprint doesn't depend on the order the catalog lists
    collaborators in.

    Examples:
        >>> release_fingerprint("Nevermind (Deluxe)", ["b", "a"])
        'a,b::nevermind'
    """
    artists = ",".join(sorted(str(a) for a in artist_ids))
    return f"{artists}::{normalize_title(title)}"


__all__ = [
    "EDITION_MARKER_PATTERNS",
    "normalize_title",
    "release_fingerprint",
]
