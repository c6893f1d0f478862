"""Release category enums for the domain layer (base + extended type system).

Hey future me - releases have TWO category layers:
1. BASE CATEGORY: What the catalog source reports (album, single, compilation, appears_on).
2. EXTENDED CATEGORY: What WE decide after remapping (the base four plus EP, remix, live and
   rerelease).

Why two layers? The catalog source only knows four buckets. A five-track "single" is an EP for
any human listener, and a remix album clutters the album collection. The classification engine
refines the base category into exactly ONE extended category per release.

Example combinations:
- "Midnight EP" reported as single      → base=SINGLE, extended=EP
- "Abbey Road"                          → base=ALBUM,  extended=ALBUM
- "Nevermind (Remastered)"              → base=ALBUM,  extended=RERELEASE
- "Alive at Wembley (Live)"             → base=ALBUM,  extended=LIVE

Usage:
    from releasebot.domain.value_objects.release_categories import BaseCategory, ExtendedCategory

    category = ExtendedCategory.from_base(BaseCategory.SINGLE)
    if category is ExtendedCategory.EP:
        ...
"""

from enum import Enum


class BaseCategory(str, Enum):
    """Base category - the coarse type reported by the catalog source.

    These are mutually exclusive. Values match the catalog's album_group strings.
    """

    ALBUM = "album"
    """Standard full-length album."""

    SINGLE = "single"
    """Single release (the catalog lumps EPs in here too)."""

    COMPILATION = "compilation"
    """Best-of or various-artists collection."""

    APPEARS_ON = "appears_on"
    """Release by someone else that features the tracked artist."""

    @classmethod
    def from_string(cls, value: str) -> "BaseCategory":
        """Parse string to enum, defaulting to ALBUM if unknown.

        Args:
            value: String like "album", "SINGLE", "appears-on", etc.

        Returns:
            Corresponding enum value, or ALBUM if not recognized.
        """
        if not value:
            return cls.ALBUM

        normalized = value.lower().strip()

        try:
            return cls(normalized)
        except ValueError:
            pass

        mappings = {
            "appears-on": cls.APPEARS_ON,
            "appears on": cls.APPEARS_ON,
            "appearson": cls.APPEARS_ON,
            "lp": cls.ALBUM,
            "full-length": cls.ALBUM,
            "ep": cls.SINGLE,
            "maxi-single": cls.SINGLE,
            "various": cls.COMPILATION,
        }

        return mappings.get(normalized, cls.ALBUM)

    def __str__(self) -> str:
        return self.value


class ExtendedCategory(str, Enum):
    """Extended category - the effective category after remapping.

    Exactly one per release. The first four mirror BaseCategory one-to-one, the rest
    are refinements produced by remap rules.
    """

    ALBUM = "album"
    SINGLE = "single"
    COMPILATION = "compilation"
    APPEARS_ON = "appears_on"

    EP = "ep"
    """Single that is really an extended play (title marker, track count or duration)."""

    REMIX = "remix"
    """Release consisting primarily of remixes."""

    LIVE = "live"
    """Live recording from a concert/performance."""

    RERELEASE = "rerelease"
    """Remaster, reissue or anniversary edition of an older release."""

    @classmethod
    def from_base(cls, base: BaseCategory) -> "ExtendedCategory":
        """Map a base category onto its identical extended category."""
        return cls(base.value)

    @classmethod
    def from_string(cls, value: str) -> "ExtendedCategory | None":
        """Parse string to enum, returning None if unknown.

        Args:
            value: String like "ep", "REMIX", "appears-on", etc.

        Returns:
            Corresponding enum value, or None if not recognized.
        """
        if not value:
            return None

        normalized = value.lower().strip()

        try:
            return cls(normalized)
        except ValueError:
            pass

        mappings = {
            "appears-on": cls.APPEARS_ON,
            "appears on": cls.APPEARS_ON,
            "remixes": cls.REMIX,
            "re-release": cls.RERELEASE,
            "reissue": cls.RERELEASE,
            "remaster": cls.RERELEASE,
        }

        return mappings.get(normalized)

    def __str__(self) -> str:
        return self.value


# Hey future me - this is the order in which category groups are curated! Albums land first,
# appears_on last. Keep it in sync with how users expect their collections to fill up.
DEFAULT_CATEGORY_ORDER: tuple[ExtendedCategory, ...] = (
    ExtendedCategory.ALBUM,
    ExtendedCategory.SINGLE,
    ExtendedCategory.EP,
    ExtendedCategory.REMIX,
    ExtendedCategory.LIVE,
    ExtendedCategory.RERELEASE,
    ExtendedCategory.COMPILATION,
    ExtendedCategory.APPEARS_ON,
)


def category_sort_key(category: ExtendedCategory) -> int:
    """Position of a category in DEFAULT_CATEGORY_ORDER."""
    return DEFAULT_CATEGORY_ORDER.index(category)
