"""Campaign eligibility: approved and inside its (inclusive) schedule window.

The same rule exists twice: ``is_eligible`` for objects already in memory and
``eligibility_clause`` for SQL filtering. Both must stay in agreement.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, or_, func
from sqlalchemy.sql.elements import ColumnElement

from app.models.db.campaigns import Campaign
from app.models.db.enums import CampaignStatus
from app.utils.time import as_utc


def is_eligible(campaign: Any, as_of: datetime) -> bool:
    if campaign is None or campaign.status != CampaignStatus.APPROVED:
        return False
    now = as_utc(as_of)
    starts = as_utc(campaign.scheduled_from)
    ends = as_utc(campaign.scheduled_to)
    if starts is not None and starts > now:  # type: ignore[operator]
        return False
    if ends is not None and ends < now:  # type: ignore[operator]
        return False
    return True


def eligibility_clause(as_of: datetime) -> ColumnElement[bool]:
    return and_(
        Campaign.status == CampaignStatus.APPROVED,
        or_(Campaign.scheduled_from.is_(None), Campaign.scheduled_from <= as_of),
        or_(Campaign.scheduled_to.is_(None), Campaign.scheduled_to >= as_of),
    )


def feed_order_key(campaign: Any) -> tuple[datetime, int]:
    """Explicit start time if scheduled, otherwise creation time; id breaks ties."""
    anchor = campaign.scheduled_from if campaign.scheduled_from is not None else campaign.created_at
    return as_utc(anchor), campaign.id  # type: ignore[return-value]


def feed_order_by() -> tuple[ColumnElement[Any], ...]:
    return (
        func.coalesce(Campaign.scheduled_from, Campaign.created_at).asc(),
        Campaign.id.asc(),
    )


__all__ = ["is_eligible", "eligibility_clause", "feed_order_key", "feed_order_by"]
