"""
Ranked search against a real SQLite FTS5 index.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from arcaide_server.db import create_engine_from_settings, create_session_factory, init_db
from arcaide_server.search.executor import (
    SearchExecutor,
    SearchSpec,
    normalize_entity_type,
    render_search_statement,
)
from arcaide_server.search.indexer import SearchIndexer
from arcaide_server.search.vocabulary import Vocabulary
from arcaide_server.services.arcs import ArcService
from arcaide_server.services.things import ThingService

from conftest import add_campaign, add_thing_type, make_settings


@pytest.fixture
def executor(session, vocabulary):
    return SearchExecutor(session, vocabulary)


@pytest.fixture
def things(session, indexer):
    return ThingService(session, indexer)


@pytest.fixture
def arcs(session, indexer):
    return ArcService(session, indexer)


@pytest.fixture
async def campaign(session):
    return await add_campaign(session)


@pytest.fixture
async def character(session, campaign):
    return await add_thing_type(session, campaign)


async def test_finds_thing_with_highlight(executor, things, campaign, character):
    await things.create(campaign, "Goblin Chief Klarg", character.id, "klarg leads the goblin warband")

    hits = await executor.search("klarg", campaign.id)

    assert len(hits) == 1
    assert hits[0].slug == "goblin-chief-klarg"
    assert hits[0].type == "thing"
    assert "<mark>klarg</mark>" in hits[0].highlight
    assert hits[0].original_query is None
    assert hits[0].corrected_query is None


async def test_results_are_ranked_best_first(executor, things, campaign, character):
    await things.create(
        campaign,
        "Tavern Keeper",
        character.id,
        "Talks all evening about ale, the weather, his cousin and once about a dragon.",
    )
    await things.create(campaign, "Dragon", character.id, "The dragon sleeps on the dragon hoard.")

    hits = await executor.search("dragon", campaign.id)

    assert [hit.slug for hit in hits] == ["dragon", "tavern-keeper"]
    ranks = [hit.rank for hit in hits]
    assert ranks == sorted(ranks)
    assert ranks[0] < ranks[1]


async def test_search_never_leaves_the_campaign(session, executor, things, campaign, character):
    other = await add_campaign(session, slug="other-campaign", user_id="user-2")
    other_type = await add_thing_type(session, other)

    await things.create(campaign, "Red Dragon", character.id, "A dragon")
    await things.create(other, "Blue Dragon", other_type.id, "Another dragon")

    hits = await executor.search("dragon", campaign.id)

    assert [hit.slug for hit in hits] == ["red-dragon"]
    assert all(hit.campaign_id == campaign.id for hit in hits)


async def test_type_filter(executor, things, arcs, campaign, character):
    await things.create(campaign, "Dragon", character.id, "scaly")
    await arcs.create(campaign, "Dragon Hunt", fields={"hook": "Slay the dragon"})

    arc_hits = await executor.search("dragon", campaign.id, entity_type="arc")
    thing_hits = await executor.search("dragon", campaign.id, entity_type="thing")
    any_hits = await executor.search("dragon", campaign.id, entity_type="any")
    bogus_hits = await executor.search("dragon", campaign.id, entity_type="monster")

    assert [h.slug for h in arc_hits] == ["dragon-hunt"]
    assert [h.slug for h in thing_hits] == ["dragon"]
    assert len(any_hits) == 2
    assert len(bogus_hits) == 2


@pytest.mark.parametrize("query", ["", "   ", "!!! ***", "\"()\""])
async def test_degenerate_query_returns_empty_result(executor, things, campaign, character, query):
    await things.create(campaign, "Dragon", character.id, "scaly")

    assert await executor.search(query, campaign.id) == []


@pytest.mark.parametrize("query", ["AND", "NOT", "OR AND", "  NOT  "])
async def test_operator_only_query_returns_empty_result(executor, things, campaign, character, query):
    await things.create(campaign, "Dragon", character.id, "scaly")

    assert await executor.search(query, campaign.id) == []


@pytest.mark.parametrize("query", ["dragon AND", "OR dragon", "dragon NOT", "AND dragon OR"])
async def test_dangling_operators_are_dropped(executor, things, campaign, character, query):
    await things.create(campaign, "Dragon", character.id, "scaly")

    hits = await executor.search(query, campaign.id)

    assert [h.slug for h in hits] == ["dragon"]


async def test_operator_between_terms_still_applies(executor, things, campaign, character):
    await things.create(campaign, "Red Dragon", character.id, "scaly")
    await things.create(campaign, "Blue Dragon", character.id, "scaly")

    hits = await executor.search("dragon NOT blue", campaign.id)

    assert [h.slug for h in hits] == ["red-dragon"]


async def test_query_punctuation_is_stripped(executor, things, campaign, character):
    await things.create(campaign, "Dragon", character.id, "scaly")

    hits = await executor.search('"dragon"*)', campaign.id)

    assert [h.slug for h in hits] == ["dragon"]


async def test_fuzzy_search_corrects_query(executor, things, campaign, character):
    await things.create(campaign, "Goblin Chief Klarg", character.id, "klarg leads the goblin warband")

    hits = await executor.search("klark", campaign.id, fuzzy=True)

    assert [h.slug for h in hits] == ["goblin-chief-klarg"]
    assert hits[0].original_query == "klark"
    assert hits[0].corrected_query == "klarg"


async def test_fuzzy_search_without_correction_keeps_original_query(executor, things, campaign, character):
    await things.create(campaign, "Goblin Chief Klarg", character.id, "klarg leads the goblin warband")

    hits = await executor.search("klarg", campaign.id, fuzzy=True)

    assert len(hits) == 1
    assert hits[0].original_query == "klarg"
    assert hits[0].corrected_query is None


async def test_fuzzy_search_survives_missing_fuzzy_backend(tmp_path):
    settings = make_settings(tmp_path, fuzzy_backend_enabled=False)
    engine = create_engine_from_settings(settings)
    await init_db(engine)

    try:
        async with create_session_factory(engine)() as session:
            vocabulary = Vocabulary(session)
            things = ThingService(session, SearchIndexer(session, vocabulary))
            campaign = await add_campaign(session)
            character = await add_thing_type(session, campaign)
            await things.create(campaign, "Goblin Chief Klarg", character.id, "klarg leads the goblin warband")

            executor = SearchExecutor(session, vocabulary)
            hits = await executor.search("klarg", campaign.id, fuzzy=True)
            missed = await executor.search("klark", campaign.id, fuzzy=True)

            assert [h.slug for h in hits] == ["goblin-chief-klarg"]
            assert hits[0].original_query == "klarg"
            assert hits[0].corrected_query is None
            assert missed == []
    finally:
        await engine.dispose()


async def test_store_failure_propagates(session, executor, campaign):
    await session.execute(text("DROP TABLE search_index_fts"))

    with pytest.raises(DBAPIError):
        await executor.search("dragon", campaign.id)


def test_normalize_entity_type():
    assert normalize_entity_type("arc") == "arc"
    assert normalize_entity_type(" THING ") == "thing"
    assert normalize_entity_type("any") is None
    assert normalize_entity_type("monster") is None
    assert normalize_entity_type(None) is None


def test_statement_binds_the_match_string():
    spec = SearchSpec(campaign_id=7, match="dragon'; DROP TABLE arc; --")
    stmt = render_search_statement(spec)

    sql = str(stmt)
    assert "DROP TABLE" not in sql
    assert ":match" in sql
    assert "snippet(search_index_fts, 4, '<mark>', '</mark>', '...', 5)" in sql
