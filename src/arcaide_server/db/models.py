"""
SQLAlchemy Models

Defines the database schema for:
- Campaigns and their thing types
- Arcs (hierarchical narrative units) and Things (catalogued entities)
- The arc/thing association
- The search vocabulary used for fuzzy correction

Every rich-text field is stored twice: the editor's node tree in a JSON
column and its plain-text projection in a ``<field>_text`` shadow column.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Any

from sqlalchemy import (
    JSON,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


ARC_RICH_TEXT_FIELDS = (
    "hook",
    "protagonist",
    "antagonist",
    "problem",
    "key",
    "outcome",
    "notes",
)

THING_RICH_TEXT_FIELDS = ("description",)


def _utcnow() -> datetime:
    # SQLite DateTime columns are naive, so store naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )


# ---------------------------------------------------------------------
# Campaign
# ---------------------------------------------------------------------

class Campaign(TimestampMixin, Base):
    """
    Top-level container owned by one user. Scopes arcs, things and search.
    """
    __tablename__ = "campaign"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    description_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="user_campaign_slug_unique"),
    )


# ---------------------------------------------------------------------
# Arc
# ---------------------------------------------------------------------

class Arc(TimestampMixin, Base):
    """
    A narrative unit. Arcs nest through ``parent_arc_id``.
    """
    __tablename__ = "arc"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    campaign_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_arc_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("arc.id", ondelete="SET NULL"),
        nullable=True,
    )

    hook: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    hook_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    protagonist: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    protagonist_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    antagonist: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    antagonist_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    problem: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    problem_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    key: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    key_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    outcome: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    outcome_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    notes_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("campaign_id", "slug", name="campaign_arc_slug_unique"),
    )


# ---------------------------------------------------------------------
# Thing Type / Thing
# ---------------------------------------------------------------------

class ThingType(Base):
    """
    Campaign-defined category of things (character, location, item, ...).
    """
    __tablename__ = "thing_type"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    campaign_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Thing(TimestampMixin, Base):
    """
    A typed campaign entity with one rich-text description.
    """
    __tablename__ = "thing"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("thing_type.id", ondelete="CASCADE"),
        nullable=False,
    )
    campaign_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("campaign.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    description_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("campaign_id", "slug", name="campaign_thing_slug_unique"),
    )


class ArcThing(Base):
    """
    Many-to-many association between arcs and things.
    """
    __tablename__ = "arc_thing"

    arc_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("arc.id", ondelete="CASCADE"),
        primary_key=True,
    )
    thing_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("thing.id", ondelete="CASCADE"),
        primary_key=True,
    )

    __table_args__ = (
        Index("idx_arc_thing_thing", "thing_id"),
    )


# ---------------------------------------------------------------------
# Search Vocabulary
# ---------------------------------------------------------------------

class SearchVocabulary(Base):
    """
    Observed search term with an advisory usage frequency.

    Terms are stored lower-cased and are never deleted in normal operation.
    """
    __tablename__ = "search_vocabulary"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    term: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
