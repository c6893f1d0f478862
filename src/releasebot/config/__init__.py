"""Configuration module for releasebot."""

from .settings import (
    BatchingPolicy,
    CacheSettings,
    ClassificationSettings,
    CurationSettings,
    DatabaseSettings,
    FetchSettings,
    ObservabilitySettings,
    Settings,
    get_settings,
)

__all__ = [
    "BatchingPolicy",
    "CacheSettings",
    "ClassificationSettings",
    "CurationSettings",
    "DatabaseSettings",
    "FetchSettings",
    "ObservabilitySettings",
    "Settings",
    "get_settings",
]
