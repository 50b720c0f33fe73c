"""
Thing Routes

CRUD for things, their association with arcs and link inspection of their
description. Renaming a thing rewrites ``[[thing#old-slug]]`` references
across the campaign before the response is returned.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..search.indexer import thing_content
from ..services.arcs import ArcService
from ..services.links import collect_links
from ..services.things import ThingService
from .dependencies import SessionDep, get_arc_service, get_thing_service
from .models import ArcRead, LinkRead, OperationResult, ThingCreate, ThingRead, ThingUpdate
from .scope import OwnedCampaign

router = APIRouter(prefix="/campaigns/{campaign_slug}/things", tags=["things"])

ThingServiceDep = Annotated[ThingService, Depends(get_thing_service)]
ArcServiceDep = Annotated[ArcService, Depends(get_arc_service)]


@router.post(
    "",
    response_model=ThingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a thing",
)
async def create_thing(
    req: ThingCreate,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
) -> ThingRead:
    thing = await things.create(campaign, req.name, req.type_id, req.description)
    return ThingRead.model_validate(thing)


@router.get("", response_model=List[ThingRead])
async def list_things(
    campaign: OwnedCampaign,
    things: ThingServiceDep,
    count: Annotated[Optional[int], Query(ge=1, le=500)] = None,
) -> List[ThingRead]:
    """
    Most recently updated things of the campaign, 20 unless ``count`` says
    otherwise.
    """
    recent = await things.list_recent(campaign, count)
    return [ThingRead.model_validate(t) for t in recent]


@router.get("/{thing_slug}", response_model=ThingRead)
async def get_thing(
    thing_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
) -> ThingRead:
    thing = await things.get(campaign, thing_slug)
    return ThingRead.model_validate(thing)


@router.put("/{thing_slug}", response_model=ThingRead)
async def update_thing(
    thing_slug: str,
    req: ThingUpdate,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
) -> ThingRead:
    """
    Partially update a thing.

    A new name that derives a different slug renames the thing, and every
    link to it in the campaign's arcs and things is rewritten in the same
    transaction.
    """
    thing = await things.get(campaign, thing_slug)

    changes = req.model_dump(exclude_unset=True)
    kwargs = {}
    if "description" in changes:
        kwargs["description"] = req.description

    thing = await things.update(
        campaign,
        thing,
        name=req.name,
        type_id=req.type_id,
        **kwargs,
    )
    return ThingRead.model_validate(thing)


@router.delete(
    "/{thing_slug}",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
async def delete_thing(
    thing_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
) -> OperationResult:
    thing = await things.get(campaign, thing_slug)
    await things.delete(thing)
    return OperationResult(status="deleted")


# ---------------------------------------------------------------------
# Arc associations
# ---------------------------------------------------------------------

@router.get("/{thing_slug}/arcs", response_model=List[ArcRead])
async def list_thing_arcs(
    thing_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
) -> List[ArcRead]:
    thing = await things.get(campaign, thing_slug)
    arcs = await things.list_arcs(thing)
    return [ArcRead.model_validate(a) for a in arcs]


@router.post(
    "/{thing_slug}/arcs/{arc_slug}",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
async def add_thing_to_arc(
    thing_slug: str,
    arc_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
    arcs: ArcServiceDep,
) -> OperationResult:
    thing = await things.get(campaign, thing_slug)
    arc = await arcs.get(campaign, arc_slug)
    await things.add_to_arc(thing, arc)
    return OperationResult(status="ok")


@router.delete(
    "/{thing_slug}/arcs/{arc_slug}",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
async def remove_thing_from_arc(
    thing_slug: str,
    arc_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
    arcs: ArcServiceDep,
) -> OperationResult:
    thing = await things.get(campaign, thing_slug)
    arc = await arcs.get(campaign, arc_slug)
    removed = await things.remove_from_arc(thing, arc)
    return OperationResult(status="deleted", count=removed)


# ---------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------

@router.get("/{thing_slug}/links", response_model=List[LinkRead])
async def list_thing_links(
    thing_slug: str,
    campaign: OwnedCampaign,
    things: ThingServiceDep,
    session: SessionDep,
) -> List[LinkRead]:
    """
    Link markers in the thing's description, with offsets into its plain
    text and whether each target still exists.
    """
    thing = await things.get(campaign, thing_slug)
    links = await collect_links(session, campaign.id, thing_content(thing))
    return [LinkRead.model_validate(link) for link in links]
