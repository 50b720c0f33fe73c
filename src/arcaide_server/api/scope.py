from typing import Annotated

from fastapi import Depends

from ..auth.models import UserContext
from ..auth.security import get_current_user
from ..db.models import Campaign
from ..services.campaigns import CampaignService
from .dependencies import get_campaign_service


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


async def get_owned_campaign(
    campaign_slug: str,
    user: CurrentUser,
    campaigns: Annotated[CampaignService, Depends(get_campaign_service)],
) -> Campaign:
    """
    Resolve the path's campaign for the caller. Someone else's campaign is
    reported as not found.
    """
    return await campaigns.get_owned(user.user_id, campaign_slug)


OwnedCampaign = Annotated[Campaign, Depends(get_owned_campaign)]
