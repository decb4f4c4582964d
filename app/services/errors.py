"""Domain errors raised by the feed engine and campaign lifecycle.

Endpoints translate these into HTTP responses; services never raise
HTTPException themselves.
"""
from __future__ import annotations


class AdManagerError(Exception):
    """Base class for service-level failures."""

    code: str = "error"


class InvalidInput(AdManagerError):
    # Feed parameters are clamped instead; kept for write-side validation
    code = "invalid_input"


class StoreUnavailable(AdManagerError):
    """The durable store could not complete a read or write."""

    code = "store_unavailable"


class FeedUnavailable(AdManagerError):
    """Feed resolution failed after any degraded fallback was exhausted."""

    code = "feed_failed"


class CampaignNotFound(AdManagerError):
    code = "campaign_not_found"


class CampaignStateError(AdManagerError):
    """Transition not allowed from the campaign's current status."""

    code = "invalid_state"


class RecoveryError(AdManagerError):
    """Recovery token missing, unknown, already used or expired."""

    code = "recovery_failed"


__all__ = [
    "AdManagerError",
    "InvalidInput",
    "StoreUnavailable",
    "FeedUnavailable",
    "CampaignNotFound",
    "CampaignStateError",
    "RecoveryError",
]
