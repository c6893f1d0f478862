"""Application services."""

from releasebot.application.services.classification_service import ClassificationService
from releasebot.application.services.collection_curator import (
    CollectionCurator,
    CurationResult,
    GroupResult,
    GroupState,
)
from releasebot.application.services.collection_targets import CollectionTargetRegistry
from releasebot.application.services.track_fetch_service import (
    TrackFetchResult,
    TrackFetchService,
)

__all__ = [
    "ClassificationService",
    "CollectionCurator",
    "CollectionTargetRegistry",
    "CurationResult",
    "GroupResult",
    "GroupState",
    "TrackFetchResult",
    "TrackFetchService",
]
