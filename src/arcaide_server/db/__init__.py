"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
SQLite FTS5 search index DDL.
"""

from .session import (
    get_async_session,
    session_scope,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from .models import (
    Base,
    Campaign,
    Arc,
    Thing,
    ThingType,
    ArcThing,
    SearchVocabulary,
    ARC_RICH_TEXT_FIELDS,
    THING_RICH_TEXT_FIELDS,
)
from .search_index import SEARCH_INDEX_TABLE

__all__ = [
    "get_async_session",
    "session_scope",
    "create_engine_from_settings",
    "create_session_factory",
    "init_db",
    "Base",
    "Campaign",
    "Arc",
    "Thing",
    "ThingType",
    "ArcThing",
    "SearchVocabulary",
    "ARC_RICH_TEXT_FIELDS",
    "THING_RICH_TEXT_FIELDS",
    "SEARCH_INDEX_TABLE",
]
