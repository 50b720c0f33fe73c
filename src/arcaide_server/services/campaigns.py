"""
Campaign Service

Ownership-scoped campaign and thing-type operations. Every other service
receives an already-resolved Campaign from here.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import EntityNotFoundError, SlugConflictError
from ..db.models import Campaign, ThingType
from ..search.indexer import SearchIndexer
from .fields import set_rich_text
from .slugs import slugify


class CampaignService:
    """
    Campaign CRUD for a single user.
    """

    def __init__(self, session: AsyncSession, indexer: SearchIndexer) -> None:
        self._session = session
        self._indexer = indexer

    async def get_owned(self, user_id: str, slug: str) -> Campaign:
        """
        Resolve a campaign by slug, only if ``user_id`` owns it.

        Raises
        ------
        EntityNotFoundError
            Unknown slug or campaign owned by someone else.
        """
        result = await self._session.execute(
            select(Campaign).where(Campaign.slug == slug, Campaign.user_id == user_id)
        )
        campaign = result.scalar_one_or_none()
        if campaign is None:
            raise EntityNotFoundError("campaign", slug)
        return campaign

    async def list_owned(self, user_id: str) -> List[Campaign]:
        result = await self._session.execute(
            select(Campaign)
            .where(Campaign.user_id == user_id)
            .order_by(Campaign.updated_at.desc(), Campaign.id.desc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        user_id: str,
        name: str,
        description: Optional[Any] = None,
    ) -> Campaign:
        slug = slugify(name)

        existing = await self._session.execute(
            select(Campaign.id).where(Campaign.slug == slug, Campaign.user_id == user_id)
        )
        if existing.first() is not None:
            raise SlugConflictError("campaign", slug)

        campaign = Campaign(slug=slug, name=name, user_id=user_id)
        set_rich_text(campaign, "description", description)

        self._session.add(campaign)
        await self._session.flush()
        return campaign

    async def delete(self, campaign: Campaign) -> None:
        """
        Delete a campaign. Arcs, things and thing types cascade in the
        database; index rows are removed here.
        """
        await self._indexer.remove_campaign(campaign.id)
        await self._session.execute(delete(Campaign).where(Campaign.id == campaign.id))

    # ------------------------------------------------------------------
    # Thing types
    # ------------------------------------------------------------------

    async def list_thing_types(self, campaign: Campaign) -> List[ThingType]:
        result = await self._session.execute(
            select(ThingType)
            .where(ThingType.campaign_id == campaign.id)
            .order_by(ThingType.name)
        )
        return list(result.scalars().all())

    async def create_thing_type(self, campaign: Campaign, name: str) -> ThingType:
        thing_type = ThingType(name=name, campaign_id=campaign.id)
        self._session.add(thing_type)
        await self._session.flush()
        return thing_type
