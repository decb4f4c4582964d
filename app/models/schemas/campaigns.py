"""
Pydantic schemas for campaign management.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator
from app.utils.time import as_utc
from ..db.enums import CampaignStatus

class ScheduleWindow(BaseModel):
    scheduled_from: Optional[datetime] = None
    scheduled_to: Optional[datetime] = None

    @model_validator(mode="after")
    def _window_ordered(self):
        if self.scheduled_from and self.scheduled_to and as_utc(self.scheduled_to) < as_utc(self.scheduled_from):
            raise ValueError("scheduled_to must not be before scheduled_from")
        return self

class CampaignCreate(ScheduleWindow):
    title: str = Field(min_length=1, max_length=300)
    file_url: str = Field(min_length=1, max_length=2048, description="Locator returned by the storage service")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Autumn Sale",
            "file_url": "https://cdn.example.com/ads/42/1718000000-ab12cd.mp4",
            "scheduled_from": "2026-11-01T08:00:00Z",
            "scheduled_to": "2026-11-30T22:00:00Z",
        }
    })

class AdminCampaignCreate(CampaignCreate):
    # Attribute the upload to a business account; defaults to the admin
    user_email: Optional[str] = Field(None, max_length=320)

class ScheduleUpdate(ScheduleWindow):
    pass

class CampaignRead(BaseModel):
    id: int
    user_id: Optional[int]
    title: str
    file_url: str
    status: CampaignStatus
    scheduled_from: Optional[datetime]
    scheduled_to: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class AdminCampaignRead(CampaignRead):
    company_name: Optional[str] = None
    email: Optional[str] = None

class TargetingUpdate(BaseModel):
    display_ids: List[int] = Field(default_factory=list, description="Empty list makes the campaign global")

class TargetingRead(BaseModel):
    campaign_id: int
    display_ids: List[int]
    is_global: bool
