"""Domain value objects."""

from releasebot.domain.value_objects.release_categories import (
    DEFAULT_CATEGORY_ORDER,
    BaseCategory,
    ExtendedCategory,
)
from releasebot.domain.value_objects.remap_rules import (
    DEFAULT_REMAPPER_ORDER,
    DEFAULT_RULES,
    RemapperKind,
    RemapRule,
)
from releasebot.domain.value_objects.title_normalization import (
    normalize_title,
    release_fingerprint,
)

__all__ = [
    "BaseCategory",
    "DEFAULT_CATEGORY_ORDER",
    "DEFAULT_REMAPPER_ORDER",
    "DEFAULT_RULES",
    "ExtendedCategory",
    "RemapRule",
    "RemapperKind",
    "normalize_title",
    "release_fingerprint",
]
