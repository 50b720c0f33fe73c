"""
Rename Propagation

When an arc or thing gets a new slug, every ``[[type#old-slug]]`` marker in
the campaign is rewritten to ``[[type#new-slug]]``.

The rewrite is a literal substring replace (SQL ``replace()``, never a
pattern) applied to both the stored node tree and its plain-text shadow of
every rich-text field, plus the search index content. There is no reverse
index of link targets, so the sweep covers the whole campaign.

It must run in the same transaction as the rename: if any statement fails
the caller rolls back and the entity keeps its old slug.
"""

from __future__ import annotations

import logging
from typing import Sequence, Type

from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Arc, Thing, ARC_RICH_TEXT_FIELDS, THING_RICH_TEXT_FIELDS
from ..documents.links import format_link
from ..search.indexer import SearchIndexer


logger = logging.getLogger("arcaide.rename")

REWRITE_TARGETS = (
    (Arc, ARC_RICH_TEXT_FIELDS),
    (Thing, THING_RICH_TEXT_FIELDS),
)


async def _rewrite_model(
    session: AsyncSession,
    model: Type,
    fields: Sequence[str],
    campaign_id: int,
    old_link: str,
    new_link: str,
) -> int:
    columns = []
    for name in fields:
        columns.append(getattr(model, name))
        columns.append(getattr(model, f"{name}_text"))

    values = {
        column.key: func.replace(column, old_link, new_link)
        for column in columns
    }

    stmt = (
        update(model)
        .where(
            model.campaign_id == campaign_id,
            or_(*(func.instr(column, old_link) > 0 for column in columns)),
        )
        .values(values)
        .execution_options(synchronize_session=False)
    )

    result = await session.execute(stmt)
    return result.rowcount


async def propagate_rename(
    session: AsyncSession,
    indexer: SearchIndexer,
    entity_type: str,
    old_slug: str,
    new_slug: str,
    campaign_id: int,
) -> int:
    """
    Rewrite links to a renamed entity across one campaign.

    Returns the number of arc and thing rows that were rewritten.
    """
    if old_slug == new_slug:
        return 0

    old_link = format_link(entity_type, old_slug)
    new_link = format_link(entity_type, new_slug)

    rewritten = 0
    for model, fields in REWRITE_TARGETS:
        rewritten += await _rewrite_model(
            session, model, fields, campaign_id, old_link, new_link
        )

    await indexer.rewrite_links(campaign_id, old_link, new_link)

    logger.info(
        "Rename %s -> %s in campaign %s rewrote %d rows",
        old_link,
        new_link,
        campaign_id,
        rewritten,
    )
    return rewritten
