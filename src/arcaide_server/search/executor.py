"""
Ranked Search Executor

Runs a (possibly spell-corrected) full-text query against the FTS5 index,
scoped to one campaign and optionally to one entity type, and returns
ranked results with highlighted snippets.

Responsibilities
----------------
- Sanitize the raw query
- Optionally correct its terms against the vocabulary
- Render one parameterized statement from a SearchSpec
- Annotate results with the original and corrected query
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Literal, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause

from ..db.search_index import SEARCH_INDEX_TABLE
from .query import (
    apply_corrections,
    extract_search_terms,
    sanitize_query,
    strip_dangling_operators,
)
from .vocabulary import Vocabulary


logger = logging.getLogger("arcaide.search")

EntityType = Literal["arc", "thing"]
ENTITY_TYPES = ("arc", "thing")


def normalize_entity_type(value: Optional[str]) -> Optional[EntityType]:
    """
    Map a user-supplied type filter to ``"arc"``, ``"thing"`` or None (any).

    Unknown values fall back to "any" rather than raising.
    """
    if value is None:
        return None
    value = value.strip().lower()
    return value if value in ENTITY_TYPES else None


# ---------------------------------------------------------------------
# Query Specification
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class SearchSpec:
    """
    Everything that varies between two search statements.

    ``match`` is passed to FTS5 as a bound parameter, never interpolated.
    """
    campaign_id: int
    match: str
    entity_type: Optional[EntityType] = None
    snippet_column: int = 4
    snippet_tokens: int = 5


@dataclass(frozen=True)
class SearchHit:
    type: str
    entity_id: int
    campaign_id: int
    title: str
    content: str
    slug: str
    rank: float
    highlight: str
    original_query: Optional[str] = None
    corrected_query: Optional[str] = None


def render_search_statement(spec: SearchSpec) -> TextClause:
    """
    Render the single SQL statement used for ranked search.

    The optional type filter is expressed in SQL (``:entity_type IS NULL``)
    so the statement text never changes with the filters. Only the snippet
    column and token count are inlined, and both are integers.
    """
    snippet_column = int(spec.snippet_column)
    snippet_tokens = int(spec.snippet_tokens)

    sql = f"""
        SELECT
            type,
            entity_id,
            campaign_id,
            title,
            content,
            slug,
            bm25({SEARCH_INDEX_TABLE}) AS rank,
            snippet({SEARCH_INDEX_TABLE}, {snippet_column}, '<mark>', '</mark>', '...', {snippet_tokens}) AS highlight
        FROM {SEARCH_INDEX_TABLE}
        WHERE {SEARCH_INDEX_TABLE} MATCH :match
          AND campaign_id = :campaign_id
          AND (:entity_type IS NULL OR type = :entity_type)
        ORDER BY rank
    """

    return text(sql).bindparams(
        bindparam("match", value=spec.match),
        bindparam("campaign_id", value=spec.campaign_id),
        bindparam("entity_type", value=spec.entity_type),
    )


# ---------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------

class SearchExecutor:
    """
    Campaign-scoped full-text search with optional spell correction.

    Results are never cached: every call runs against current data.
    """

    def __init__(
        self,
        session: AsyncSession,
        vocabulary: Vocabulary,
        snippet_column: int = 4,
        snippet_tokens: int = 5,
    ) -> None:
        self._session = session
        self._vocabulary = vocabulary
        self._snippet_column = snippet_column
        self._snippet_tokens = snippet_tokens

    async def _correct(self, query: str) -> Optional[str]:
        """
        Return the corrected query, or None if nothing changed.
        """
        extracted = extract_search_terms(query)
        if not extracted.terms:
            return None

        result = await self._vocabulary.correct_terms(extracted.terms)
        if result.degraded:
            return None

        corrected = apply_corrections(extracted.template, extracted.terms, result.corrections)
        if corrected == query:
            return None

        logger.debug("Corrected search query %r -> %r", query, corrected)
        return corrected

    async def execute(self, spec: SearchSpec) -> List[SearchHit]:
        result = await self._session.execute(render_search_statement(spec))

        return [
            SearchHit(
                type=row.type,
                entity_id=int(row.entity_id),
                campaign_id=int(row.campaign_id),
                title=row.title,
                content=row.content,
                slug=row.slug,
                rank=float(row.rank),
                highlight=row.highlight or "",
            )
            for row in result.all()
        ]

    async def search(
        self,
        query: str,
        campaign_id: int,
        entity_type: Optional[str] = "any",
        fuzzy: bool = False,
    ) -> List[SearchHit]:
        """
        Search one campaign.

        Parameters
        ----------
        query : str
            Raw user query. Anything but letters, digits and whitespace is
            stripped before use.
        campaign_id : int
            Campaign to search. Results never leave this campaign.
        entity_type : str
            ``"arc"``, ``"thing"`` or ``"any"``.
        fuzzy : bool
            Spell-correct the query against the vocabulary first.

        Returns
        -------
        List[SearchHit]
            Best match first (ascending BM25 rank). A query with nothing
            left to match after sanitizing returns an empty list without
            touching the index, since FTS5 rejects an empty MATCH
            expression with a syntax error.
        """
        sanitized = strip_dangling_operators(sanitize_query(query))
        if not sanitized:
            return []

        corrected: Optional[str] = None
        if fuzzy:
            corrected = await self._correct(sanitized)
            if corrected is not None:
                corrected = strip_dangling_operators(corrected) or None

        spec = SearchSpec(
            campaign_id=campaign_id,
            match=corrected or sanitized,
            entity_type=normalize_entity_type(entity_type),
            snippet_column=self._snippet_column,
            snippet_tokens=self._snippet_tokens,
        )

        hits = await self.execute(spec)

        if not fuzzy:
            return hits

        return [
            replace(hit, original_query=query, corrected_query=corrected)
            for hit in hits
        ]
