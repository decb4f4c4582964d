"""Override register: short-lived manual "play this now" directives per display.

Rules:
* ``issue`` clamps the duration to the configured bounds (1..60 minutes) and
  stores ``valid_until = as_of + duration``. It does not check eligibility;
  the feed resolver re-checks at read time, so a campaign approved after the
  override was issued becomes visible without re-issuing.
* ``current_live`` returns the live row with the greatest ``valid_until``
  (latest insert wins a tie). Expiry is purely a read-time filter and rows
  are never deleted here.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.config import OVERRIDE_SETTINGS
from app.models.db.overrides import DisplayOverride
from app.utils import get_logger

logger = get_logger(__name__)


def clamp_duration_minutes(minutes: int | None) -> int:
    low = int(OVERRIDE_SETTINGS["min_minutes"])
    high = int(OVERRIDE_SETTINGS["max_minutes"])
    if minutes is None:
        minutes = int(OVERRIDE_SETTINGS["default_minutes"])
    return max(low, min(high, int(minutes)))


def live_override_filter(display_id: int, as_of: datetime):
    return and_(DisplayOverride.display_id == display_id, DisplayOverride.valid_until >= as_of)


def live_override_order():
    return DisplayOverride.valid_until.desc(), DisplayOverride.id.desc()


class OverrideRegister:
    def __init__(self, session: Session):
        self.session = session

    def issue(self, display_id: int, campaign_id: int, duration_minutes: int | None, as_of: datetime) -> DisplayOverride:
        minutes = clamp_duration_minutes(duration_minutes)
        override = DisplayOverride(
            display_id=display_id,
            campaign_id=campaign_id,
            valid_until=as_of + timedelta(minutes=minutes),
            created_at=as_of,
        )
        self.session.add(override)
        self.session.commit()
        self.session.refresh(override)
        logger.info(
            "Override issued",
            override_id=override.id,
            display_id=display_id,
            campaign_id=campaign_id,
            minutes=minutes,
        )
        return override

    def current_live(self, display_id: int, as_of: datetime) -> DisplayOverride | None:
        stmt = (
            select(DisplayOverride)
            .where(live_override_filter(display_id, as_of))
            .order_by(*live_override_order())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def history(self, display_id: int, limit: int | None = None) -> list[DisplayOverride]:
        size = limit or int(OVERRIDE_SETTINGS["history_limit"])
        rows = self.session.execute(
            select(DisplayOverride)
            .where(DisplayOverride.display_id == display_id)
            .order_by(DisplayOverride.id.desc())
            .limit(size)
        ).scalars().all()
        return list(rows)


__all__ = ["OverrideRegister", "clamp_duration_minutes", "live_override_filter", "live_override_order"]
