"""Targeting index: which displays may show a campaign.

A campaign with no targeting entries is global (visible everywhere); once it
has at least one entry it is visible only on the listed displays. The rule is
exposed both as a point check (``is_visible``) and as a correlated SQL clause
(``visibility_clause``) so feed resolution stays a single query.
"""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import and_, delete, exists, insert, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.config import DISPLAY_IDS
from app.models.db.campaigns import Campaign
from app.models.db.targeting import campaign_display_targets as targets
from app.utils import get_logger

logger = get_logger(__name__)


def visibility_clause(display_id: int) -> ColumnElement[bool]:
    has_any_target = exists().where(targets.c.campaign_id == Campaign.id)
    targets_display = exists().where(
        and_(targets.c.campaign_id == Campaign.id, targets.c.display_id == display_id)
    )
    return or_(~has_any_target, targets_display)


class TargetingIndex:
    def __init__(self, session: Session):
        self.session = session

    def is_visible(self, campaign_id: int, display_id: int) -> bool:
        displays = self.displays_for(campaign_id)
        return not displays or display_id in displays

    def displays_for(self, campaign_id: int) -> list[int]:
        rows = self.session.execute(
            select(targets.c.display_id)
            .where(targets.c.campaign_id == campaign_id)
            .order_by(targets.c.display_id)
        ).scalars().all()
        return list(rows)

    def replace_targets(self, campaign_id: int, display_ids: Iterable[int]) -> list[int]:
        """Swap the campaign's entries for ``display_ids``; an empty list makes it global.

        Unknown display ids are dropped. Caller commits.
        """
        requested = set(display_ids)
        wanted = sorted(d for d in requested if d in DISPLAY_IDS)
        dropped = sorted(requested - set(wanted))
        if dropped:
            logger.warning("Ignoring unknown display ids", campaign_id=campaign_id, display_ids=dropped)
        self.session.execute(delete(targets).where(targets.c.campaign_id == campaign_id))
        if wanted:
            self.session.execute(
                insert(targets),
                [{"campaign_id": campaign_id, "display_id": d} for d in wanted],
            )
        return wanted

    def clear(self, campaign_id: int) -> None:
        self.session.execute(delete(targets).where(targets.c.campaign_id == campaign_id))


__all__ = ["TargetingIndex", "visibility_clause"]
