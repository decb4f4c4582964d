"""Central Enum definitions for core domain states.

These replace scattered string literals so DB models, schemas and the feed
logic agree on the same values.
"""
from __future__ import annotations
import enum


class CampaignStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    DELETED = "deleted"


class UserRole(str, enum.Enum):
    BUSINESS = "business"
    ADMIN = "admin"


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


__all__ = [
    "CampaignStatus",
    "UserRole",
    "MediaType",
]
