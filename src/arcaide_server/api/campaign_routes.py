"""
Campaign Routes

Campaigns are the top-level container owned by a single user. Thing types
are managed here as well since they only exist inside a campaign.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from ..services.campaigns import CampaignService
from .dependencies import get_campaign_service
from .models import (
    CampaignCreate,
    CampaignRead,
    OperationResult,
    ThingTypeCreate,
    ThingTypeRead,
)
from .scope import CurrentUser, OwnedCampaign

router = APIRouter(prefix="/campaigns", tags=["campaigns"])

CampaignServiceDep = Annotated[CampaignService, Depends(get_campaign_service)]


@router.post(
    "",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a campaign",
)
async def create_campaign(
    req: CampaignCreate,
    user: CurrentUser,
    campaigns: CampaignServiceDep,
) -> CampaignRead:
    """
    Create a campaign owned by the caller. The slug is derived from the
    name and must be unused among the caller's campaigns.
    """
    campaign = await campaigns.create(user.user_id, req.name, req.description)
    return CampaignRead.model_validate(campaign)


@router.get("", response_model=List[CampaignRead])
async def list_campaigns(
    user: CurrentUser,
    campaigns: CampaignServiceDep,
) -> List[CampaignRead]:
    owned = await campaigns.list_owned(user.user_id)
    return [CampaignRead.model_validate(c) for c in owned]


@router.get("/{campaign_slug}", response_model=CampaignRead)
async def get_campaign(campaign: OwnedCampaign) -> CampaignRead:
    return CampaignRead.model_validate(campaign)


@router.delete(
    "/{campaign_slug}",
    response_model=OperationResult,
    response_model_exclude_none=True,
)
async def delete_campaign(
    campaign: OwnedCampaign,
    campaigns: CampaignServiceDep,
) -> OperationResult:
    """
    Delete a campaign with all of its arcs, things and thing types.
    """
    await campaigns.delete(campaign)
    return OperationResult(status="deleted")


# ---------------------------------------------------------------------
# Thing Types
# ---------------------------------------------------------------------

@router.post(
    "/{campaign_slug}/thing-types",
    response_model=ThingTypeRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_thing_type(
    req: ThingTypeCreate,
    campaign: OwnedCampaign,
    campaigns: CampaignServiceDep,
) -> ThingTypeRead:
    thing_type = await campaigns.create_thing_type(campaign, req.name)
    return ThingTypeRead.model_validate(thing_type)


@router.get("/{campaign_slug}/thing-types", response_model=List[ThingTypeRead])
async def list_thing_types(
    campaign: OwnedCampaign,
    campaigns: CampaignServiceDep,
) -> List[ThingTypeRead]:
    thing_types = await campaigns.list_thing_types(campaign)
    return [ThingTypeRead.model_validate(t) for t in thing_types]
