"""
Pydantic schemas for the player feed and manual overrides.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from ..db.enums import MediaType

class PlaylistItem(BaseModel):
    id: int
    title: str
    url: str
    type: MediaType
    duration: Optional[int] = Field(None, description="Seconds for images; null lets a video play to its end")
    scheduled_from: Optional[datetime] = None
    scheduled_to: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

class FeedResponse(BaseModel):
    display: int
    playlist: List[PlaylistItem]
    server_time: datetime = Field(alias="serverTime")
    degraded: bool = False

    model_config = ConfigDict(populate_by_name=True)

class OverrideIssue(BaseModel):
    campaign_id: int
    display_id: int
    minutes: Optional[int] = Field(None, description="Clamped to 1..60, default 10")

class OverrideRead(BaseModel):
    id: int
    display_id: int
    campaign_id: int
    valid_until: datetime
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
