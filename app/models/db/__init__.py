from .users import User
from .campaigns import Campaign
from .targeting import campaign_display_targets
from .overrides import DisplayOverride
from .enums import CampaignStatus, UserRole, MediaType

__all__ = [
    "User",
    "Campaign",
    "campaign_display_targets",
    "DisplayOverride",
    "CampaignStatus",
    "UserRole",
    "MediaType",
]
