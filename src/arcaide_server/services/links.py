"""
Link Inspection

Reports the link markers found in an entity's plain text, and whether each
resolved marker still points at an existing arc or thing of the campaign.
Deleting an entity does not clean up links to it; this is how such
dangling links are surfaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Arc, Thing
from ..documents.links import LINK_TYPES, LinkKind, iter_link_references


@dataclass(frozen=True)
class LinkStatus:
    kind: LinkKind
    start: int
    end: int
    link_type: Optional[str]
    slug: Optional[str]
    exists: bool


async def _existing_slugs(
    session: AsyncSession,
    campaign_id: int,
    wanted: Dict[str, Set[str]],
) -> Dict[str, Set[str]]:
    found: Dict[str, Set[str]] = {name: set() for name in LINK_TYPES}

    for link_type, model in (("arc", Arc), ("thing", Thing)):
        slugs = wanted.get(link_type)
        if not slugs:
            continue
        result = await session.execute(
            select(model.slug).where(
                model.campaign_id == campaign_id,
                model.slug.in_(sorted(slugs)),
            )
        )
        found[link_type] = {row[0] for row in result.all()}

    return found


async def collect_links(
    session: AsyncSession,
    campaign_id: int,
    text: str,
) -> List[LinkStatus]:
    references = list(iter_link_references(text))

    wanted: Dict[str, Set[str]] = {}
    for ref in references:
        if ref.kind is LinkKind.RESOLVED and ref.link_type in LINK_TYPES:
            wanted.setdefault(ref.link_type, set()).add(ref.slug)

    existing = await _existing_slugs(session, campaign_id, wanted)

    return [
        LinkStatus(
            kind=ref.kind,
            start=ref.start,
            end=ref.end,
            link_type=ref.link_type,
            slug=ref.slug,
            exists=(
                ref.kind is LinkKind.RESOLVED
                and ref.slug in existing.get(ref.link_type, set())
            ),
        )
        for ref in references
    ]
