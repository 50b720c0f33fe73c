"""
Vocabulary & Fuzzy Correction

Keeps a term-frequency vocabulary of indexed words and proposes spelling
corrections for query terms by Levenshtein distance.

The edit-distance function lives in the database (``levenshtein(a, b)``).
When it is missing the lookup raises; the engine then reports a degraded
result with identity corrections instead of failing the search.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import SearchVocabulary
from .query import TERM_PATTERN


logger = logging.getLogger("arcaide.vocabulary")

MIN_TERM_LENGTH = 2


@dataclass(frozen=True)
class CorrectionResult:
    """
    Outcome of a correction pass.

    ``corrections`` maps each lower-cased term to its best-effort spelling.
    ``degraded`` is True when the fuzzy backend was unavailable and every
    term was mapped to itself.
    """
    corrections: Dict[str, str] = field(default_factory=dict)
    degraded: bool = False

    @classmethod
    def identity(cls, terms: Iterable[str]) -> "CorrectionResult":
        return cls(
            corrections={term.lower(): term for term in terms},
            degraded=True,
        )


def tokenize_terms(text: str) -> List[str]:
    """Lower-cased vocabulary candidates found in ``text``."""
    return [
        token.lower()
        for token in TERM_PATTERN.findall(text or "")
        if len(token) >= MIN_TERM_LENGTH
    ]


class Vocabulary:
    """
    Database-backed search vocabulary.
    """

    def __init__(self, session: AsyncSession, max_distance: int = 2) -> None:
        """
        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        max_distance : int
            Largest edit distance accepted for a correction.
        """
        self._session = session
        self._max_distance = max_distance

    async def record_terms(self, text: str) -> int:
        """
        Add the words of ``text`` to the vocabulary.

        Uses an upsert so concurrent indexers never lose a frequency
        increment. Returns the number of distinct terms touched.
        """
        counts = Counter(tokenize_terms(text))
        if not counts:
            return 0

        stmt = sqlite_insert(SearchVocabulary).values(
            [{"term": term, "frequency": n} for term, n in counts.items()]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SearchVocabulary.term],
            set_={"frequency": SearchVocabulary.frequency + stmt.excluded.frequency},
        )

        await self._session.execute(stmt)
        return len(counts)

    async def _closest(self, term: str) -> str:
        distance = func.levenshtein(SearchVocabulary.term, term)

        stmt = (
            select(SearchVocabulary.term, distance.label("distance"))
            .where(distance <= self._max_distance)
            .order_by(distance, SearchVocabulary.frequency.desc(), SearchVocabulary.term)
            .limit(1)
        )

        result = await self._session.execute(stmt)
        row = result.first()
        return row.term if row is not None else term

    async def correct_terms(self, terms: Iterable[str]) -> CorrectionResult:
        """
        Map each distinct lower-cased term to the closest vocabulary entry.

        Ties on distance go to the more frequent term. A term with no entry
        within ``max_distance`` maps to itself.
        """
        terms = list(terms)
        if not terms:
            return CorrectionResult()

        corrections: Dict[str, str] = {}

        try:
            # Savepoint keeps the surrounding transaction usable if the
            # fuzzy function is missing.
            async with self._session.begin_nested():
                for term in terms:
                    lowered = term.lower()
                    if lowered in corrections:
                        continue
                    corrections[lowered] = await self._closest(lowered)
        except DBAPIError as exc:
            logger.warning(
                "Fuzzy backend unavailable, using uncorrected terms: %s",
                type(exc.orig).__name__ if exc.orig is not None else type(exc).__name__,
            )
            return CorrectionResult.identity(terms)

        return CorrectionResult(corrections=corrections)
