"""
Search Indexer

Keeps the FTS5 index and the vocabulary in step with arc and thing writes.
Runs inside the caller's transaction, so an entity and its index row are
always committed together.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Arc, Thing, ARC_RICH_TEXT_FIELDS, THING_RICH_TEXT_FIELDS
from ..db.search_index import SEARCH_INDEX_TABLE
from .vocabulary import Vocabulary


logger = logging.getLogger("arcaide.indexer")


def arc_content(arc: Arc) -> str:
    parts = [getattr(arc, f"{name}_text") or "" for name in ARC_RICH_TEXT_FIELDS]
    return "\n".join(part for part in parts if part)


def thing_content(thing: Thing) -> str:
    parts = [getattr(thing, f"{name}_text") or "" for name in THING_RICH_TEXT_FIELDS]
    return "\n".join(part for part in parts if part)


class SearchIndexer:
    """
    Writes index rows for arcs and things.
    """

    def __init__(self, session: AsyncSession, vocabulary: Vocabulary) -> None:
        self._session = session
        self._vocabulary = vocabulary

    async def _replace_row(
        self,
        entity_type: str,
        entity_id: int,
        campaign_id: int,
        title: str,
        content: str,
        slug: str,
    ) -> None:
        await self.remove_entity(entity_type, entity_id)
        await self._session.execute(
            text(
                f"INSERT INTO {SEARCH_INDEX_TABLE} "
                "(type, entity_id, campaign_id, title, content, slug) "
                "VALUES (:type, :entity_id, :campaign_id, :title, :content, :slug)"
            ),
            {
                "type": entity_type,
                "entity_id": entity_id,
                "campaign_id": campaign_id,
                "title": title,
                "content": content,
                "slug": slug,
            },
        )
        await self._vocabulary.record_terms(f"{title}\n{content}")

    async def index_arc(self, arc: Arc) -> None:
        await self._replace_row("arc", arc.id, arc.campaign_id, arc.name, arc_content(arc), arc.slug)

    async def index_thing(self, thing: Thing) -> None:
        await self._replace_row(
            "thing", thing.id, thing.campaign_id, thing.name, thing_content(thing), thing.slug
        )

    async def remove_entity(self, entity_type: str, entity_id: int) -> None:
        await self._session.execute(
            text(f"DELETE FROM {SEARCH_INDEX_TABLE} WHERE type = :type AND entity_id = :entity_id"),
            {"type": entity_type, "entity_id": entity_id},
        )

    async def remove_campaign(self, campaign_id: int) -> None:
        await self._session.execute(
            text(f"DELETE FROM {SEARCH_INDEX_TABLE} WHERE campaign_id = :campaign_id"),
            {"campaign_id": campaign_id},
        )

    async def rewrite_links(self, campaign_id: int, old_link: str, new_link: str) -> int:
        """
        Literal substring replace of a link marker in the indexed content.
        """
        result = await self._session.execute(
            text(
                f"UPDATE {SEARCH_INDEX_TABLE} "
                "SET content = replace(content, :old_link, :new_link) "
                "WHERE campaign_id = :campaign_id AND instr(content, :old_link) > 0"
            ),
            {"campaign_id": campaign_id, "old_link": old_link, "new_link": new_link},
        )
        return result.rowcount

    async def reindex_campaign(self, campaign_id: int) -> int:
        """
        Drop and rebuild every index row of a campaign. Returns rows written.
        """
        await self.remove_campaign(campaign_id)

        count = 0
        arcs = await self._session.execute(select(Arc).where(Arc.campaign_id == campaign_id))
        for arc in arcs.scalars().all():
            await self.index_arc(arc)
            count += 1

        things = await self._session.execute(select(Thing).where(Thing.campaign_id == campaign_id))
        for thing in things.scalars().all():
            await self.index_thing(thing)
            count += 1

        logger.info("Reindexed campaign %s (%d entities)", campaign_id, count)
        return count
