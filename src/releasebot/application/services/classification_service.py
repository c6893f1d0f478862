"""Classification service - refines base categories and applies the blacklist gate."""

import logging
from collections.abc import Iterable, Mapping, Sequence

from releasebot.config import ClassificationSettings
from releasebot.domain.entities import Blacklist, ClassifiedRelease, Release
from releasebot.domain.value_objects.release_categories import ExtendedCategory
from releasebot.domain.value_objects.remap_rules import (
    DEFAULT_REMAPPER_ORDER,
    DEFAULT_RULES,
    RemapperKind,
    RemapRule,
)

logger = logging.getLogger(__name__)

INERT_BLACKLISTED = "blacklisted"


class ClassificationService:
    """Assigns every release exactly one extended category.

    Rules are tried in priority order; the first enabled rule that applies to the
    release's base category AND matches wins. No match keeps the base category.
    """

    # Hey future me - only ENABLED rules are kept in self._rules, in priority order. A disabled
    # rule isn't "tried and failed", it simply doesn't exist for this service instance. So with
    # REMIX off, a remix single that also qualifies as EP still becomes EP.
    def __init__(
        self,
        order: Sequence[RemapperKind] = DEFAULT_REMAPPER_ORDER,
        enabled: Iterable[RemapperKind] | None = None,
        blacklist: Blacklist | None = None,
        rules: Mapping[RemapperKind, RemapRule] | None = None,
    ) -> None:
        rules = rules if rules is not None else DEFAULT_RULES
        enabled_kinds = set(enabled) if enabled is not None else set(order)
        self._rules: list[RemapRule] = [
            rules[kind] for kind in order if kind in enabled_kinds
        ]
        self._blacklist = blacklist or Blacklist()

    @classmethod
    def from_settings(
        cls, settings: ClassificationSettings, blacklist: Blacklist | None = None
    ) -> "ClassificationService":
        order = list(settings.remapper_order)
        return cls(
            order=order,
            enabled=[kind for kind in order if settings.is_enabled(kind)],
            blacklist=blacklist,
        )

    @property
    def active_rules(self) -> list[RemapperKind]:
        return [rule.kind for rule in self._rules]

    def classify(self, release: Release) -> ExtendedCategory:
        """Return the effective category of a release."""
        base = release.base_category
        for rule in self._rules:
            if rule.applies_to_base(base) and rule.matches(release):
                logger.debug(
                    "Release %s (%s) remapped %s → %s by %s rule",
                    release.id,
                    release.title,
                    base,
                    rule.target_category,
                    rule.kind,
                )
                return rule.target_category
        return ExtendedCategory.from_base(base)

    def classify_all(self, releases: Iterable[Release]) -> list[ClassifiedRelease]:
        """Classify releases and mark blacklisted ones inert."""
        classified: list[ClassifiedRelease] = []
        for release in releases:
            item = ClassifiedRelease(release=release, category=self.classify(release))
            if self._blacklist.is_blacklisted(release, item.category):
                logger.debug(
                    "Release %s is blacklisted for %s by all of its artists",
                    release.id,
                    item.category,
                )
                item = item.as_inert(INERT_BLACKLISTED)
            classified.append(item)
        return classified


__all__ = ["INERT_BLACKLISTED", "ClassificationService"]
