"""
Search Routes

Ranked full-text search over one campaign's arcs and things. This is the
endpoint the editor's link picker and the campaign search box call.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ..search.executor import SearchExecutor
from .dependencies import get_search_executor
from .models import SearchResult, SearchResults
from .scope import OwnedCampaign

router = APIRouter(prefix="/campaigns/{campaign_slug}/search", tags=["search"])


@router.get(
    "",
    response_model=SearchResults,
    response_model_exclude_none=True,
    summary="Ranked full-text search",
    status_code=status.HTTP_200_OK,
)
async def search(
    campaign: OwnedCampaign,
    executor: Annotated[SearchExecutor, Depends(get_search_executor)],
    query: Annotated[str, Query()] = "",
    type: Annotated[str, Query()] = "any",
    fuzzy: Annotated[bool, Query()] = False,
) -> SearchResults:
    """
    Search the campaign.

    Parameters
    ----------
    query : str
        Free text. Characters other than letters, digits and whitespace are
        dropped.
    type : str
        ``any``, ``arc`` or ``thing``. Unknown values search everything.
    fuzzy : bool
        Spell-correct query terms against the indexed vocabulary first.
        Results then carry ``originalQuery`` and, when a correction was
        applied, ``correctedQuery``.

    Returns
    -------
    SearchResults
        Best match first. Store failures propagate to the global handler
        and become a 500.
    """
    hits = await executor.search(query, campaign.id, entity_type=type, fuzzy=fuzzy)
    return [SearchResult.model_validate(hit) for hit in hits]
