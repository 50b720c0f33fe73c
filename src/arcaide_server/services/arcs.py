"""
Arc Service

CRUD for arcs, including the parent/child hierarchy. A rename whose
derived slug changes triggers rename propagation inside the same
transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import EntityNotFoundError, InvalidHierarchyError, SlugConflictError
from ..db.models import Arc, Campaign, ARC_RICH_TEXT_FIELDS
from ..search.indexer import SearchIndexer
from .fields import set_rich_text
from .rename import propagate_rename
from .slugs import slugify


class ArcService:

    def __init__(self, session: AsyncSession, indexer: SearchIndexer) -> None:
        self._session = session
        self._indexer = indexer

    async def _ensure_slug_free(self, campaign: Campaign, slug: str) -> None:
        result = await self._session.execute(
            select(Arc.id).where(Arc.campaign_id == campaign.id, Arc.slug == slug)
        )
        if result.first() is not None:
            raise SlugConflictError("arc", slug)

    async def _check_parent(
        self,
        campaign: Campaign,
        parent_arc_id: int,
        arc_id: Optional[int] = None,
    ) -> None:
        """
        The parent must live in the same campaign and must not be the arc
        itself or one of its descendants.
        """
        current: Optional[int] = parent_arc_id
        seen = set()

        while current is not None:
            if current == arc_id:
                raise InvalidHierarchyError("An arc cannot be nested under itself")
            if current in seen:
                break
            seen.add(current)

            result = await self._session.execute(
                select(Arc.campaign_id, Arc.parent_arc_id).where(Arc.id == current)
            )
            row = result.first()
            if row is None or row.campaign_id != campaign.id:
                raise EntityNotFoundError("arc", current)
            current = row.parent_arc_id

    async def get(self, campaign: Campaign, slug: str) -> Arc:
        result = await self._session.execute(
            select(Arc).where(Arc.campaign_id == campaign.id, Arc.slug == slug)
        )
        arc = result.scalar_one_or_none()
        if arc is None:
            raise EntityNotFoundError("arc", slug)
        return arc

    async def list_all(self, campaign: Campaign) -> List[Arc]:
        result = await self._session.execute(
            select(Arc)
            .where(Arc.campaign_id == campaign.id)
            .order_by(Arc.updated_at.desc(), Arc.id.desc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        campaign: Campaign,
        name: str,
        parent_arc_id: Optional[int] = None,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Arc:
        slug = slugify(name)
        await self._ensure_slug_free(campaign, slug)
        if parent_arc_id is not None:
            await self._check_parent(campaign, parent_arc_id)

        arc = Arc(
            slug=slug,
            name=name,
            campaign_id=campaign.id,
            parent_arc_id=parent_arc_id,
        )
        fields = fields or {}
        for field in ARC_RICH_TEXT_FIELDS:
            set_rich_text(arc, field, fields.get(field))

        self._session.add(arc)
        await self._session.flush()
        await self._indexer.index_arc(arc)
        return arc

    async def update(
        self,
        campaign: Campaign,
        arc: Arc,
        changes: Dict[str, Any],
    ) -> Arc:
        """
        Apply a partial update. Only keys present in ``changes`` are touched;
        ``parent_arc_id: None`` detaches the arc from its parent.
        """
        old_slug = arc.slug
        new_slug = old_slug

        name = changes.get("name")
        if name is not None:
            arc.name = name
            new_slug = slugify(name)
            if new_slug != old_slug:
                await self._ensure_slug_free(campaign, new_slug)
                arc.slug = new_slug

        if "parent_arc_id" in changes:
            parent_arc_id = changes["parent_arc_id"]
            if parent_arc_id is not None:
                await self._check_parent(campaign, parent_arc_id, arc.id)
            arc.parent_arc_id = parent_arc_id

        for field in ARC_RICH_TEXT_FIELDS:
            if field in changes:
                set_rich_text(arc, field, changes[field])

        await self._session.flush()

        if new_slug != old_slug:
            await propagate_rename(
                self._session, self._indexer, "arc", old_slug, new_slug, campaign.id
            )
            await self._session.refresh(arc)

        await self._indexer.index_arc(arc)
        return arc

    async def delete(self, arc: Arc) -> None:
        # Links to the deleted arc are left dangling on purpose
        await self._indexer.remove_entity("arc", arc.id)
        await self._session.execute(delete(Arc).where(Arc.id == arc.id))
