"""
Request-scoped service construction.

Everything is built per request from ``app.state`` (settings, session
factory) and the request's database session. There are no process-wide
client objects.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..db import get_async_session
from ..search.executor import SearchExecutor
from ..search.indexer import SearchIndexer
from ..search.vocabulary import Vocabulary
from ..services.arcs import ArcService
from ..services.campaigns import CampaignService
from ..services.things import ThingService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_vocabulary(session: SessionDep, settings: SettingsDep) -> Vocabulary:
    return Vocabulary(session, max_distance=settings.fuzzy_max_distance)


def get_indexer(
    session: SessionDep,
    vocabulary: Annotated[Vocabulary, Depends(get_vocabulary)],
) -> SearchIndexer:
    return SearchIndexer(session, vocabulary)


def get_search_executor(
    session: SessionDep,
    settings: SettingsDep,
    vocabulary: Annotated[Vocabulary, Depends(get_vocabulary)],
) -> SearchExecutor:
    return SearchExecutor(
        session,
        vocabulary,
        snippet_column=settings.search_snippet_column,
        snippet_tokens=settings.search_snippet_tokens,
    )


def get_campaign_service(
    session: SessionDep,
    indexer: Annotated[SearchIndexer, Depends(get_indexer)],
) -> CampaignService:
    return CampaignService(session, indexer)


def get_arc_service(
    session: SessionDep,
    indexer: Annotated[SearchIndexer, Depends(get_indexer)],
) -> ArcService:
    return ArcService(session, indexer)


def get_thing_service(
    session: SessionDep,
    indexer: Annotated[SearchIndexer, Depends(get_indexer)],
) -> ThingService:
    return ThingService(session, indexer)
