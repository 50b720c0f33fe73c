"""
API Models

Pydantic models used for request/response validation across campaign,
arc, thing and search endpoints.

Design Goals
------------
- Strong typing
- camelCase on the wire, snake_case in Python
- Rich-text values validated and normalized at the boundary
- Explicit search result contract
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional, Literal

from pydantic import AfterValidator, BaseModel, Field, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from ..documents.links import LinkKind
from ..documents.model import normalize_document
from ..services.slugs import slugify


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestModel(ApiModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def _validate_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not slugify(value):
        raise ValueError("name must contain at least one letter or digit")
    return value


def _validate_document(value: Any) -> Any:
    # Raises InvalidDocumentError (a ValueError), reported as 422
    return normalize_document(value)


EntityName = Annotated[str, Field(min_length=1, max_length=255), AfterValidator(_validate_name)]
RichText = Annotated[Optional[Any], AfterValidator(_validate_document)]


# ---------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------

class OperationResult(ApiModel):
    """
    Standardized mutation operation result.
    """
    status: Literal["updated", "deleted", "created", "ok"]
    count: Optional[int] = Field(default=None, ge=0)


# ---------------------------------------------------------------------
# Campaigns / Thing Types
# ---------------------------------------------------------------------

class CampaignCreate(RequestModel):
    name: EntityName
    description: RichText = None


class CampaignRead(ApiModel):
    id: int
    slug: str
    name: str
    description: Optional[Any] = None
    created_at: datetime
    updated_at: datetime


class ThingTypeCreate(RequestModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class ThingTypeRead(ApiModel):
    id: int
    name: str
    campaign_id: int


# ---------------------------------------------------------------------
# Things
# ---------------------------------------------------------------------

class ThingCreate(RequestModel):
    name: EntityName
    type_id: int = Field(..., gt=0)
    description: RichText = None


class ThingUpdate(RequestModel):
    """
    Partial update. Only fields present in the body are applied.
    """
    name: Optional[EntityName] = None
    type_id: Optional[int] = Field(default=None, gt=0)
    description: RichText = None


class ThingRead(ApiModel):
    id: int
    slug: str
    name: str
    type_id: int
    campaign_id: int
    description: Optional[Any] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------

class ArcCreate(RequestModel):
    name: EntityName
    parent_arc_id: Optional[int] = Field(default=None, gt=0)
    hook: RichText = None
    protagonist: RichText = None
    antagonist: RichText = None
    problem: RichText = None
    key: RichText = None
    outcome: RichText = None
    notes: RichText = None


class ArcUpdate(ArcCreate):
    """
    Partial update. ``parentArcId: null`` detaches the arc from its parent.
    """
    name: Optional[EntityName] = None


class ArcRead(ApiModel):
    id: int
    slug: str
    name: str
    campaign_id: int
    parent_arc_id: Optional[int] = None
    hook: Optional[Any] = None
    protagonist: Optional[Any] = None
    antagonist: Optional[Any] = None
    problem: Optional[Any] = None
    key: Optional[Any] = None
    outcome: Optional[Any] = None
    notes: Optional[Any] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------

class LinkRead(ApiModel):
    kind: LinkKind
    start: int
    end: int
    link_type: Optional[str] = None
    slug: Optional[str] = None
    exists: bool


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------

class SearchResult(ApiModel):
    """
    Individual search match, best first.

    ``rank`` is the BM25 score: lower is more relevant.
    """
    type: Literal["arc", "thing"]
    entity_id: int
    campaign_id: int
    title: str
    content: str
    slug: str
    rank: float
    highlight: str
    original_query: Optional[str] = None
    corrected_query: Optional[str] = None


SearchResults = List[SearchResult]
