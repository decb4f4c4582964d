from .base import ResponseBase, ErrorResponse
from .campaigns import (
    ScheduleWindow,
    CampaignCreate,
    AdminCampaignCreate,
    ScheduleUpdate,
    CampaignRead,
    AdminCampaignRead,
    TargetingUpdate,
    TargetingRead,
)
from .feed import PlaylistItem, FeedResponse, OverrideIssue, OverrideRead

__all__ = [
    # Base
    "ResponseBase",
    "ErrorResponse",

    # Campaigns
    "ScheduleWindow",
    "CampaignCreate",
    "AdminCampaignCreate",
    "ScheduleUpdate",
    "CampaignRead",
    "AdminCampaignRead",
    "TargetingUpdate",
    "TargetingRead",

    # Feed
    "PlaylistItem",
    "FeedResponse",
    "OverrideIssue",
    "OverrideRead",
]
