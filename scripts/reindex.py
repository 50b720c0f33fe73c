"""
Rebuild the full-text index and vocabulary for every campaign.

Usage:
    python scripts/reindex.py            # all campaigns
    python scripts/reindex.py my-slug    # campaigns with this slug
"""

import asyncio
import sys

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import delete, select

from arcaide_server.config import get_settings
from arcaide_server.db import (
    Campaign,
    SearchVocabulary,
    create_engine_from_settings,
    create_session_factory,
    init_db,
    session_scope,
)
from arcaide_server.search.indexer import SearchIndexer
from arcaide_server.search.vocabulary import Vocabulary


async def main(slugs):
    settings = get_settings()
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    factory = create_session_factory(engine)

    try:
        async with session_scope(factory) as session:
            stmt = select(Campaign.id, Campaign.slug).order_by(Campaign.id)
            if slugs:
                stmt = stmt.where(Campaign.slug.in_(slugs))
            campaigns = (await session.execute(stmt)).all()

            if not campaigns:
                print("No campaigns to index.")
                return

            if not slugs:
                # Full rebuild, so term frequencies are recounted from scratch
                await session.execute(delete(SearchVocabulary))

            indexer = SearchIndexer(
                session,
                Vocabulary(session, max_distance=settings.fuzzy_max_distance),
            )
            total = 0
            for campaign_id, slug in campaigns:
                count = await indexer.reindex_campaign(campaign_id)
                print(f"Indexed {slug}: {count} entities")
                total += count

        print(f"Done. {total} entities across {len(campaigns)} campaigns.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
