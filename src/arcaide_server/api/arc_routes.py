"""
Arc Routes

CRUD for arcs and link inspection of their rich-text fields. Renaming an
arc rewrites ``[[arc#old-slug]]`` references across the campaign before
the response is returned.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from ..db.models import ARC_RICH_TEXT_FIELDS
from ..search.indexer import arc_content
from ..services.arcs import ArcService
from ..services.links import collect_links
from .dependencies import SessionDep, get_arc_service
from .models import ArcCreate, ArcRead, ArcUpdate, LinkRead, OperationResult
from .scope import OwnedCampaign

router = APIRouter(prefix="/campaigns/{campaign_slug}/arcs", tags=["arcs"])

ArcServiceDep = Annotated[ArcService, Depends(get_arc_service)]


@router.post(
    "",
    response_model=ArcRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an arc",
)
async def create_arc(
    req: ArcCreate,
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
) -> ArcRead:
    fields = {field: getattr(req, field) for field in ARC_RICH_TEXT_FIELDS}
    arc = await arcs.create(campaign, req.name, req.parent_arc_id, fields)
    return ArcRead.model_validate(arc)


@router.get("", response_model=List[ArcRead])
async def list_arcs(
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
) -> List[ArcRead]:
    return [ArcRead.model_validate(a) for a in await arcs.list_all(campaign)]


@router.get("/{arc_slug}", response_model=ArcRead)
async def get_arc(
    arc_slug: str,
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
) -> ArcRead:
    arc = await arcs.get(campaign, arc_slug)
    return ArcRead.model_validate(arc)


@router.put("/{arc_slug}", response_model=ArcRead)
async def update_arc(
    arc_slug: str,
    req: ArcUpdate,
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
) -> ArcRead:
    """
    Partially update an arc. Only fields present in the body change.

    A new name that derives a different slug renames the arc, and every
    link to it in the campaign is rewritten in the same transaction.
    """
    arc = await arcs.get(campaign, arc_slug)

    # Validated values, restricted to the keys the client actually sent
    changes = {field: getattr(req, field) for field in req.model_fields_set}

    arc = await arcs.update(campaign, arc, changes)
    return ArcRead.model_validate(arc)


@router.delete(
    "/{arc_slug}",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
async def delete_arc(
    arc_slug: str,
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
) -> OperationResult:
    """
    Delete an arc. Child arcs are detached, and links pointing at the arc
    are left in place (see the links endpoints).
    """
    arc = await arcs.get(campaign, arc_slug)
    await arcs.delete(arc)
    return OperationResult(status="deleted")


@router.get("/{arc_slug}/links", response_model=List[LinkRead])
async def list_arc_links(
    arc_slug: str,
    campaign: OwnedCampaign,
    arcs: ArcServiceDep,
    session: SessionDep,
) -> List[LinkRead]:
    arc = await arcs.get(campaign, arc_slug)
    links = await collect_links(session, campaign.id, arc_content(arc))
    return [LinkRead.model_validate(link) for link in links]
