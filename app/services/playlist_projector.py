"""Playlist item projection (campaign row -> player-facing item).

Pure and deterministic: no store access, no clock. The media type comes from
the file extension of the asset URL; images get a fixed suggested duration
while videos get ``None`` so the player runs them to their natural end.
"""
from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from app.config import FEED_SETTINGS
from app.models.db.enums import MediaType
from app.models.schemas.feed import PlaylistItem
from app.utils.time import as_utc


def infer_media_type(url: str | None) -> MediaType:
    """Return IMAGE for known still-image extensions, VIDEO otherwise."""
    if not url:
        return MediaType.VIDEO
    # Signed storage URLs carry query strings; only the path has the extension
    try:
        path = urlsplit(url).path or url
    except ValueError:
        # Malformed netloc (e.g. an unclosed "["); strip query/fragment by hand
        path = url.split("?", 1)[0].split("#", 1)[0]
    _, dot, ext = path.rpartition(".")
    if not dot or "/" in ext:
        return MediaType.VIDEO
    image_exts = FEED_SETTINGS["image_extensions"]
    return MediaType.IMAGE if ext.lower() in image_exts else MediaType.VIDEO  # type: ignore[operator]


def suggested_duration(media_type: MediaType) -> int | None:
    if media_type == MediaType.IMAGE:
        return int(FEED_SETTINGS["image_duration_seconds"])  # type: ignore[arg-type]
    return None


def project_campaign(campaign: Any) -> PlaylistItem:
    """Map a campaign row (anything with id/title/file_url/schedule attrs) to a PlaylistItem."""
    media_type = infer_media_type(campaign.file_url)
    return PlaylistItem(
        id=campaign.id,
        title=campaign.title,
        url=campaign.file_url,
        type=media_type,
        duration=suggested_duration(media_type),
        scheduled_from=as_utc(campaign.scheduled_from),
        scheduled_to=as_utc(campaign.scheduled_to),
    )


__all__ = ["infer_media_type", "suggested_duration", "project_campaign"]
