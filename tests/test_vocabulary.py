"""
Vocabulary recording and fuzzy correction.
"""

import logging

import pytest
from sqlalchemy import select

from arcaide_server.db import SearchVocabulary, create_engine_from_settings, create_session_factory, init_db
from arcaide_server.search.vocabulary import CorrectionResult, Vocabulary, tokenize_terms

from conftest import make_settings


async def _frequencies(session):
    result = await session.execute(select(SearchVocabulary.term, SearchVocabulary.frequency))
    return dict(result.all())


def test_tokenize_lowercases_and_drops_single_characters():
    assert tokenize_terms("A Goblin, the KING!") == ["goblin", "the", "king"]
    assert tokenize_terms("") == []


async def test_record_terms_upserts_frequencies(session, vocabulary):
    assert await vocabulary.record_terms("Goblin goblin cave a") == 2
    assert await vocabulary.record_terms("goblin") == 1

    freqs = await _frequencies(session)
    assert freqs == {"goblin": 3, "cave": 1}


async def test_record_terms_ignores_empty_text(session, vocabulary):
    assert await vocabulary.record_terms("") == 0
    assert await _frequencies(session) == {}


async def test_correct_terms_picks_closest(vocabulary):
    await vocabulary.record_terms("dragon sword klarg")

    result = await vocabulary.correct_terms(["Dragn", "swrd"])

    assert not result.degraded
    assert result.corrections == {"dragn": "dragon", "swrd": "sword"}


async def test_tie_on_distance_goes_to_more_frequent_term(vocabulary):
    await vocabulary.record_terms("card care care care")

    result = await vocabulary.correct_terms(["cart"])

    assert result.corrections == {"cart": "care"}


async def test_tie_on_distance_and_frequency_is_alphabetical(vocabulary):
    await vocabulary.record_terms("card bard")

    result = await vocabulary.correct_terms(["hard"])

    assert result.corrections == {"hard": "bard"}


async def test_term_without_close_match_maps_to_itself(vocabulary):
    await vocabulary.record_terms("dragon")

    result = await vocabulary.correct_terms(["zzzzzz"])

    assert result.corrections == {"zzzzzz": "zzzzzz"}
    assert not result.degraded


async def test_no_terms_returns_empty_result(vocabulary):
    result = await vocabulary.correct_terms([])
    assert result == CorrectionResult()


async def test_missing_fuzzy_backend_degrades_to_identity(tmp_path, caplog):
    settings = make_settings(tmp_path, fuzzy_backend_enabled=False)
    engine = create_engine_from_settings(settings)
    await init_db(engine)

    try:
        async with create_session_factory(engine)() as session:
            vocabulary = Vocabulary(session)
            await vocabulary.record_terms("dragon")

            with caplog.at_level(logging.WARNING, logger="arcaide.vocabulary"):
                result = await vocabulary.correct_terms(["dragn"])

            assert result.degraded
            assert result.corrections == {"dragn": "dragn"}
            assert "Fuzzy backend unavailable" in caplog.text

            # The surrounding transaction is still usable
            assert await _frequencies(session) == {"dragon": 1}
    finally:
        await engine.dispose()


def test_identity_result_lowercases_keys():
    result = CorrectionResult.identity(["Dragn", "sword"])
    assert result.corrections == {"dragn": "Dragn", "sword": "sword"}
    assert result.degraded
