"""Outbound notices to advertisers.

Email delivery is an external service; this module only defines the seam
(`DeletionNotifier`) and the default implementation, which records the notice
as an audit event so an outbox relay (or an operator) can deliver it.
"""
from __future__ import annotations

from typing import Protocol

from app.utils import get_logger, log_business_event

logger = get_logger(__name__)


class DeletionNotifier(Protocol):
    def send_campaign_deleted(self, *, to: str, campaign_title: str, recover_link: str) -> None: ...


class AuditLogDeletionNotifier:
    def send_campaign_deleted(self, *, to: str, campaign_title: str, recover_link: str) -> None:
        log_business_event(
            event_type="campaign_deletion_notice",
            details={
                "to": to,
                "campaign_title": campaign_title,
                "recover_link": recover_link,
            },
        )


__all__ = ["DeletionNotifier", "AuditLogDeletionNotifier"]
