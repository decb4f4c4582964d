"""Read access used by the feed resolver.

``FeedStore`` is the seam the resolver depends on; ``SqlFeedStore`` is the
SQLAlchemy implementation composing eligibility, targeting and the override
register into queries. Any SQLAlchemy failure surfaces as StoreUnavailable
after the session is rolled back, so a fallback query can reuse it.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.db.campaigns import Campaign
from app.models.db.overrides import DisplayOverride
from app.services.eligibility import eligibility_clause, feed_order_by
from app.services.errors import StoreUnavailable
from app.services.override_register import live_override_filter, live_override_order
from app.services.targeting import visibility_clause
from app.utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FeedStore(Protocol):
    def live_override(self, display_id: int, as_of: datetime) -> Campaign | None:
        """Campaign of the winning live override, only if that campaign is eligible."""
        ...

    def eligible_campaigns(self, display_id: int, as_of: datetime, limit: int) -> Sequence[Campaign]:
        """Eligible campaigns visible to the display, in feed order, at most ``limit``."""
        ...

    def eligible_campaigns_untargeted(self, as_of: datetime, limit: int) -> Sequence[Campaign]:
        """Degraded read: eligibility only, targeting ignored."""
        ...


class SqlFeedStore:
    def __init__(self, session: Session):
        self.session = session

    def _run(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            logger.error("Feed store read failed", operation=operation, error=str(e))
            try:
                self.session.rollback()
            except SQLAlchemyError:  # pragma: no cover - connection already gone
                pass
            raise StoreUnavailable(f"{operation}: {e}") from e

    def live_override(self, display_id: int, as_of: datetime) -> Campaign | None:
        # Eligibility is part of the join, so an ineligible newer override
        # does not hide an older eligible one.
        stmt = (
            select(Campaign)
            .join(DisplayOverride, DisplayOverride.campaign_id == Campaign.id)
            .where(live_override_filter(display_id, as_of), eligibility_clause(as_of))
            .order_by(*live_override_order())
            .limit(1)
        )
        return self._run("live_override", lambda: self.session.execute(stmt).scalars().first())

    def eligible_campaigns(self, display_id: int, as_of: datetime, limit: int) -> Sequence[Campaign]:
        stmt = (
            select(Campaign)
            .where(eligibility_clause(as_of), visibility_clause(display_id))
            .order_by(*feed_order_by())
            .limit(limit)
        )
        return self._run("eligible_campaigns", lambda: list(self.session.execute(stmt).scalars().all()))

    def eligible_campaigns_untargeted(self, as_of: datetime, limit: int) -> Sequence[Campaign]:
        stmt = (
            select(Campaign)
            .where(eligibility_clause(as_of))
            .order_by(*feed_order_by())
            .limit(limit)
        )
        return self._run("eligible_campaigns_untargeted", lambda: list(self.session.execute(stmt).scalars().all()))


__all__ = ["FeedStore", "SqlFeedStore"]
