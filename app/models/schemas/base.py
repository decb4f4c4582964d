"""
Base schemas used across the application.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict

class ResponseBase(BaseModel):
    """Base response format for admin/business endpoints with an optional data payload."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

class ErrorResponse(BaseModel):
    """Structured feed failure. ``detail`` is only filled in diagnostic mode."""
    error: str = Field(description="Stable machine-readable code, e.g. 'feed_failed'")
    detail: Optional[str] = None
