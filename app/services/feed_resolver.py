"""Feed resolver: the ordered playlist a display should show right now.

Single public entry point `FeedResolver.resolve_feed(display_id, limit)`:
1. Captures `as_of` once from the injected clock; every read uses it.
2. Clamps the display id into the configured display set and the limit into
   [1, max_limit]. Bad input is normalized, never rejected.
3. Reads the winning live override (only if its campaign is eligible).
4. Reads eligible campaigns visible to the display, in feed order, truncated
   to the limit.
5. Projects rows to playlist items and puts the override item at the head,
   keeping a single occurrence of it. The override does not consume a slot,
   so the result may hold limit + 1 items.

On StoreUnavailable the resolver makes one degraded attempt (eligibility only,
no targeting, no override) and flags the result. If that also fails, or the
fallback is disabled, FeedUnavailable is raised for the caller to render.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from app.config import DISPLAY_IDS, FEED_SETTINGS
from app.models.schemas.feed import PlaylistItem
from app.services.errors import FeedUnavailable, StoreUnavailable
from app.services.feed_store import FeedStore
from app.services.playlist_projector import project_campaign
from app.utils import get_logger, log_performance
from app.utils.time import Clock, utc_now

logger = get_logger(__name__)


def clamp_display(display_id: int | None) -> int:
    """Map any value onto a configured display id.

    Below the lowest id -> lowest, above the highest -> highest, gaps in the
    set fall back to the nearest lower configured id.
    """
    displays = sorted(DISPLAY_IDS)
    if display_id is None or display_id <= displays[0]:
        return displays[0]
    if display_id >= displays[-1]:
        return displays[-1]
    return max(d for d in displays if d <= display_id)


def clamp_limit(limit: int | None) -> int:
    max_limit = int(FEED_SETTINGS["max_limit"])  # type: ignore[arg-type]
    if limit is None:
        limit = int(FEED_SETTINGS["default_limit"])  # type: ignore[arg-type]
    return max(1, min(max_limit, limit))


def merge_override(items: Sequence[PlaylistItem], override: PlaylistItem | None) -> list[PlaylistItem]:
    if override is None:
        return list(items)
    if items and items[0].id == override.id:
        return list(items)
    return [override] + [item for item in items if item.id != override.id]


@dataclass(frozen=True)
class FeedResult:
    display: int
    playlist: list[PlaylistItem]
    server_time: datetime
    degraded: bool = False
    override_id: int | None = field(default=None, compare=False)

    def to_response(self) -> dict[str, Any]:
        return {
            "display": self.display,
            "playlist": self.playlist,
            "serverTime": self.server_time,
            "degraded": self.degraded,
        }


class FeedResolver:
    def __init__(self, store: FeedStore, clock: Clock = utc_now, *, allow_degraded: bool | None = None):
        self.store = store
        self.clock = clock
        if allow_degraded is None:
            allow_degraded = bool(FEED_SETTINGS["degraded_fallback"])
        self.allow_degraded = allow_degraded

    def resolve_feed(self, display_id: int | None, limit: int | None = None) -> FeedResult:
        as_of = self.clock()
        display = clamp_display(display_id)
        size = clamp_limit(limit)
        start_time = time.time()

        try:
            override_row = self.store.live_override(display, as_of)
            rows = self.store.eligible_campaigns(display, as_of, size)
        except StoreUnavailable as e:
            logger.warning("Full feed resolution failed", display=display, error=str(e))
            if not self.allow_degraded:
                raise FeedUnavailable(str(e)) from e
            return self._resolve_degraded(display, size, as_of, start_time)

        override_item = project_campaign(override_row) if override_row is not None else None
        playlist = merge_override([project_campaign(r) for r in rows[:size]], override_item)

        log_performance(
            operation="resolve_feed",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={
                "display": display,
                "items": len(playlist),
                "override_campaign_id": override_item.id if override_item else None,
            },
        )
        return FeedResult(
            display=display,
            playlist=playlist,
            server_time=as_of,
            override_id=override_item.id if override_item else None,
        )

    def _resolve_degraded(self, display: int, size: int, as_of: datetime, start_time: float) -> FeedResult:
        try:
            rows = self.store.eligible_campaigns_untargeted(as_of, size)
        except StoreUnavailable as e:
            logger.error("Degraded feed resolution failed", display=display, error=str(e))
            raise FeedUnavailable(str(e)) from e

        playlist = [project_campaign(r) for r in rows[:size]]
        logger.warning("Serving degraded feed", display=display, items=len(playlist))
        log_performance(
            operation="resolve_feed_degraded",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"display": display, "items": len(playlist)},
        )
        return FeedResult(display=display, playlist=playlist, server_time=as_of, degraded=True)


__all__ = ["FeedResolver", "FeedResult", "clamp_display", "clamp_limit", "merge_override"]
