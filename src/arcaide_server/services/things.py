"""
Thing Service

CRUD for things plus their association with arcs. A rename whose derived
slug changes triggers rename propagation inside the same transaction.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import EntityNotFoundError, SlugConflictError
from ..db.models import Arc, ArcThing, Campaign, Thing, ThingType
from ..search.indexer import SearchIndexer
from .fields import set_rich_text
from .rename import propagate_rename
from .slugs import slugify


DEFAULT_LIST_COUNT = 20

_UNSET: Any = object()


class ThingService:

    def __init__(self, session: AsyncSession, indexer: SearchIndexer) -> None:
        self._session = session
        self._indexer = indexer

    async def _ensure_type(self, campaign: Campaign, type_id: int) -> None:
        result = await self._session.execute(
            select(ThingType.id).where(
                ThingType.id == type_id,
                ThingType.campaign_id == campaign.id,
            )
        )
        if result.first() is None:
            raise EntityNotFoundError("thing type", type_id)

    async def _ensure_slug_free(self, campaign: Campaign, slug: str) -> None:
        result = await self._session.execute(
            select(Thing.id).where(Thing.campaign_id == campaign.id, Thing.slug == slug)
        )
        if result.first() is not None:
            raise SlugConflictError("thing", slug)

    async def get(self, campaign: Campaign, slug: str) -> Thing:
        result = await self._session.execute(
            select(Thing).where(Thing.campaign_id == campaign.id, Thing.slug == slug)
        )
        thing = result.scalar_one_or_none()
        if thing is None:
            raise EntityNotFoundError("thing", slug)
        return thing

    async def list_recent(self, campaign: Campaign, count: Optional[int] = None) -> List[Thing]:
        """Most recently updated things first."""
        result = await self._session.execute(
            select(Thing)
            .where(Thing.campaign_id == campaign.id)
            .order_by(Thing.updated_at.desc(), Thing.id.desc())
            .limit(count or DEFAULT_LIST_COUNT)
        )
        return list(result.scalars().all())

    async def create(
        self,
        campaign: Campaign,
        name: str,
        type_id: int,
        description: Optional[Any] = None,
    ) -> Thing:
        slug = slugify(name)
        await self._ensure_type(campaign, type_id)
        await self._ensure_slug_free(campaign, slug)

        thing = Thing(slug=slug, name=name, type_id=type_id, campaign_id=campaign.id)
        set_rich_text(thing, "description", description)

        self._session.add(thing)
        await self._session.flush()
        await self._indexer.index_thing(thing)
        return thing

    async def update(
        self,
        campaign: Campaign,
        thing: Thing,
        name: Optional[str] = None,
        type_id: Optional[int] = None,
        description: Any = _UNSET,
    ) -> Thing:
        """
        Apply a partial update.

        ``description`` distinguishes "not provided" from an explicit None,
        which clears the field to an empty document.
        """
        old_slug = thing.slug
        new_slug = old_slug

        if name is not None:
            thing.name = name
            new_slug = slugify(name)
            if new_slug != old_slug:
                await self._ensure_slug_free(campaign, new_slug)
                thing.slug = new_slug

        if type_id is not None:
            await self._ensure_type(campaign, type_id)
            thing.type_id = type_id

        if description is not _UNSET:
            set_rich_text(thing, "description", description)

        await self._session.flush()

        if new_slug != old_slug:
            await propagate_rename(
                self._session, self._indexer, "thing", old_slug, new_slug, campaign.id
            )
            # The sweep may have rewritten this thing's own description
            await self._session.refresh(thing)

        await self._indexer.index_thing(thing)
        return thing

    async def delete(self, thing: Thing) -> None:
        await self._indexer.remove_entity("thing", thing.id)
        await self._session.execute(delete(Thing).where(Thing.id == thing.id))

    # ------------------------------------------------------------------
    # Arc associations
    # ------------------------------------------------------------------

    async def list_arcs(self, thing: Thing) -> List[Arc]:
        result = await self._session.execute(
            select(Arc)
            .join(ArcThing, ArcThing.arc_id == Arc.id)
            .where(ArcThing.thing_id == thing.id)
            .order_by(Arc.name)
        )
        return list(result.scalars().all())

    async def add_to_arc(self, thing: Thing, arc: Arc) -> None:
        stmt = (
            sqlite_insert(ArcThing)
            .values(arc_id=arc.id, thing_id=thing.id)
            .on_conflict_do_nothing()
        )
        await self._session.execute(stmt)

    async def remove_from_arc(self, thing: Thing, arc: Arc) -> int:
        result = await self._session.execute(
            delete(ArcThing).where(ArcThing.arc_id == arc.id, ArcThing.thing_id == thing.id)
        )
        return result.rowcount
