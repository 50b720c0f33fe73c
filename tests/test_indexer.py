"""
Search index maintenance.
"""

from sqlalchemy import func, select, text

from arcaide_server.db import SearchVocabulary, Thing
from arcaide_server.search.indexer import arc_content
from arcaide_server.services.arcs import ArcService
from arcaide_server.services.campaigns import CampaignService
from arcaide_server.services.things import ThingService

from conftest import add_campaign, add_thing_type


async def _index_rows(session, campaign_id=None):
    sql = "SELECT type, entity_id, title, content, slug FROM search_index_fts"
    params = {}
    if campaign_id is not None:
        sql += " WHERE campaign_id = :campaign_id"
        params["campaign_id"] = campaign_id
    result = await session.execute(text(sql), params)
    return result.all()


async def test_arc_content_joins_non_empty_fields(session, indexer):
    campaign = await add_campaign(session)
    arc = await ArcService(session, indexer).create(
        campaign, "Cragmaw", fields={"hook": "Ambush", "notes": "Wolves"}
    )
    assert arc_content(arc) == "Ambush\nWolves"


async def test_create_update_delete_keep_one_row(session, indexer):
    campaign = await add_campaign(session)
    character = await add_thing_type(session, campaign)
    things = ThingService(session, indexer)

    thing = await things.create(campaign, "Sildar", character.id, "A knight")
    await things.update(campaign, thing, description="A wounded knight")

    rows = await _index_rows(session)
    assert [(r.type, r.entity_id, r.content) for r in rows] == [("thing", thing.id, "A wounded knight")]

    await things.delete(thing)
    assert await _index_rows(session) == []


async def test_indexing_records_vocabulary(session, indexer):
    campaign = await add_campaign(session)
    await ArcService(session, indexer).create(campaign, "Wave Echo Cave", fields={"hook": "echo echo"})

    result = await session.execute(
        select(SearchVocabulary.frequency).where(SearchVocabulary.term == "echo")
    )
    assert result.scalar_one() == 3


async def test_reindex_campaign_rebuilds_rows(session, indexer):
    campaign = await add_campaign(session)
    character = await add_thing_type(session, campaign)
    await ArcService(session, indexer).create(campaign, "Act One")
    await ThingService(session, indexer).create(campaign, "Sildar", character.id)

    await session.execute(text("DELETE FROM search_index_fts"))
    assert await _index_rows(session) == []

    assert await indexer.reindex_campaign(campaign.id) == 2
    assert sorted(r.slug for r in await _index_rows(session, campaign.id)) == ["act-one", "sildar"]


async def test_campaign_delete_removes_rows_and_cascades(session, indexer):
    campaigns = CampaignService(session, indexer)
    campaign = await campaigns.create("user-1", "Lost Mine")
    character = await campaigns.create_thing_type(campaign, "Character")
    await ThingService(session, indexer).create(campaign, "Sildar", character.id)

    await campaigns.delete(campaign)

    assert await _index_rows(session) == []
    count = await session.execute(select(func.count()).select_from(Thing))
    assert count.scalar_one() == 0
