"""Application settings loaded from environment variables / .env.

Hey future me - every knob of the engine lives here, grouped the same way the code is grouped:
settings.database.*, settings.fetch.*, settings.classification.*, settings.curation.*,
settings.cache.*. Nested groups are plain pydantic BaseModels; only the root is a BaseSettings.

Env examples (nested delimiter is "__"):
    RELEASEBOT_DATABASE__URL=sqlite+aiosqlite:///./data/releasebot.db
    RELEASEBOT_CURATION__EVICTION_ENABLED=true
    RELEASEBOT_CURATION__BATCHING_POLICY=bundled
    RELEASEBOT_CLASSIFICATION__REMAPPER_ORDER='["live","ep"]'
    RELEASEBOT_TARGETS='{"album": "37i9dQZF1DX0XUsuxWHRQd", "ep": "5ABHKGoOzxkaa28ttQV9sE"}'
    RELEASEBOT_BLACKLIST='{"artist123": ["appears_on", "compilation"]}'

The services never call get_settings() themselves - the wiring code passes the relevant group
into each component's constructor. That keeps tests free of global state.
"""

from datetime import timedelta
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from releasebot.domain.value_objects.release_categories import ExtendedCategory
from releasebot.domain.value_objects.remap_rules import (
    DEFAULT_REMAPPER_ORDER,
    RemapperKind,
)


class BatchingPolicy(str, Enum):
    """How tracks of a category group are chunked into insert requests."""

    STRICT = "strict"
    """One release at a time, fixed delay between chunks (keeps release order)."""

    BUNDLED = "bundled"
    """Concatenate the whole group first, chunk at the item limit, no delay."""


class DatabaseSettings(BaseModel):
    """Durable store settings."""

    url: str = "sqlite+aiosqlite:///./releasebot.db"
    echo: bool = False
    pool_pre_ping: bool = True


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: str = "INFO"
    json_format: bool = False

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class FetchSettings(BaseModel):
    """Track fetch concurrency and pacing."""

    max_concurrency: int = Field(default=4, ge=1)
    requests_per_second: float = Field(default=2.0, gt=0)
    burst: int = Field(default=10, ge=1)
    # Hey future me - the ONLY cancellation point of a run. None = wait as long as it takes.
    deadline_seconds: float | None = Field(default=None, gt=0)


class ClassificationSettings(BaseModel):
    """Remap rule toggles and priority order."""

    ep_separation: bool = True
    remix_separation: bool = False
    live_separation: bool = False
    rerelease_separation: bool = False
    remapper_order: list[RemapperKind] = Field(
        default_factory=lambda: list(DEFAULT_REMAPPER_ORDER)
    )

    @field_validator("remapper_order")
    @classmethod
    def _validate_order(cls, value: list[RemapperKind]) -> list[RemapperKind]:
        if len(set(value)) != len(value):
            raise ValueError("remapper_order must not contain duplicates")
        # Kinds missing from the configured order keep their default relative position at the end
        missing = [kind for kind in DEFAULT_REMAPPER_ORDER if kind not in value]
        return [*value, *missing]

    def is_enabled(self, kind: RemapperKind) -> bool:
        flags = {
            RemapperKind.EP: self.ep_separation,
            RemapperKind.REMIX: self.remix_separation,
            RemapperKind.LIVE: self.live_separation,
            RemapperKind.RERELEASE: self.rerelease_separation,
        }
        return flags[kind]


class CurationSettings(BaseModel):
    """Collection capacity, batching and timing."""

    collection_capacity: int = Field(default=10_000, ge=1)
    item_limit: int = Field(default=100, ge=1)
    inter_chunk_delay_seconds: float = Field(default=1.0, ge=0)
    eviction_enabled: bool = False
    batching_policy: BatchingPolicy = BatchingPolicy.STRICT
    lookback_days: int = Field(default=3, ge=0)
    new_notification_timeout_days: int = Field(default=3, ge=0)

    @property
    def lookback(self) -> timedelta:
        return timedelta(days=self.lookback_days)

    @property
    def new_notification_timeout(self) -> timedelta:
        return timedelta(days=self.new_notification_timeout_days)


class CacheSettings(BaseModel):
    """Identity cache settings."""

    artist_cache_ttl_days: int = Field(default=1, ge=0)
    skip_new_artist_backlog: bool = True

    @property
    def artist_cache_ttl(self) -> timedelta:
        return timedelta(days=self.artist_cache_ttl_days)


def _parse_category(value: Any) -> ExtendedCategory:
    if isinstance(value, ExtendedCategory):
        return value
    category = ExtendedCategory.from_string(str(value))
    if category is None:
        raise ValueError(f"Unknown category: {value!r}")
    return category


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="RELEASEBOT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    curation: CurationSettings = Field(default_factory=CurationSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    # category → destination collection id. Categories missing here are inert.
    targets: dict[ExtendedCategory, str] = Field(default_factory=dict)
    # artist id → categories that artist is exempt from
    blacklist: dict[str, list[ExtendedCategory]] = Field(default_factory=dict)

    @field_validator("targets", mode="before")
    @classmethod
    def _normalize_target_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {_parse_category(k): v for k, v in value.items()}
        return value

    @field_validator("blacklist", mode="before")
    @classmethod
    def _normalize_blacklist(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                str(artist_id): [_parse_category(c) for c in categories]
                for artist_id, categories in value.items()
            }
        return value

    # Hey future me - lifecycle.py uses this to create the parent directory of a SQLite file
    # before the engine opens it. Returns None for in-memory SQLite and non-SQLite URLs.
    def _get_sqlite_db_path(self) -> Path | None:
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, path = url.partition(":///")
        if not path or path.startswith(":memory:"):
            return None
        return Path(path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
