"""SQLAlchemy ORM models for releasebot."""

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Hey future me, utc_now() ensures ALL timestamps are UTC! Never use datetime.now() without
# timezone - naive datetimes can't be compared with the aware ones the services produce.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models.

    All models inherit from this to use the same metadata registry.
    """

    pass


# Listen up, CacheMemberModel is ONE table for ALL identity cache sets. Each row is one member of
# one namespace ("cache.release_ids" / "abc123"). The unique constraint on (namespace, member)
# is what makes add_members idempotent - duplicates are filtered before insert, and a race that
# slips through would hit the constraint instead of silently double-storing.
class CacheMemberModel(Base):
    """Member of a named set (known release ids, fingerprints, artist ids)."""

    __tablename__ = "cache_members"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    namespace: Mapped[str] = mapped_column(String(100), nullable=False)
    # Fingerprints are sorted artist ids + normalized title, so they can get long
    member: Mapped[str] = mapped_column(String(1024), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("namespace", "member", name="uq_cache_members_namespace_member"),
        Index("ix_cache_members_namespace", "namespace"),
    )


class KeyValueModel(Base):
    """Scalar key/value pairs (artist cache refresh time, per-category last update).

    Example keys:
    - 'cache.artist_ids.last_refreshed'
    - 'target.ep.last_update'
    """

    __tablename__ = "key_values"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
    )


__all__ = [
    "Base",
    "CacheMemberModel",
    "KeyValueModel",
    "utc_now",
]
