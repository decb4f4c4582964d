"""Campaign lifecycle transitions.

    pending  --approve-->  approved
    pending  --deny----->  denied
    pending|approved|denied  --soft_delete-->  deleted  (token + deleted_at set)
    deleted  --recover(token, within window)-->  pending  (token cleared)
    deleted older than the window  --purge-->  row removed

Each transition is a single commit. Recovery tokens are single-use
capabilities: they are cleared on success and useless after the window.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from urllib.parse import quote

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.config import RECOVERY_SETTINGS
from app.models.db.campaigns import Campaign
from app.models.db.enums import CampaignStatus
from app.models.db.overrides import DisplayOverride
from app.models.db.targeting import campaign_display_targets
from app.models.db.users import User
from app.services.errors import CampaignNotFound, CampaignStateError, InvalidInput, RecoveryError
from app.services.notifications import DeletionNotifier
from app.utils import get_logger
from app.utils.time import as_utc

logger = get_logger(__name__)


def _recovery_window() -> timedelta:
    return timedelta(days=int(RECOVERY_SETTINGS["window_days"]))


def _check_window(scheduled_from: datetime | None, scheduled_to: datetime | None) -> tuple[datetime | None, datetime | None]:
    starts, ends = as_utc(scheduled_from), as_utc(scheduled_to)
    if starts and ends and ends < starts:
        raise InvalidInput("scheduled_to must not be before scheduled_from")
    return starts, ends


def get_campaign(session: Session, campaign_id: int) -> Campaign:
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        raise CampaignNotFound(f"Campaign {campaign_id} not found")
    return campaign


def create_campaign(
    session: Session,
    *,
    owner: User,
    title: str,
    file_url: str,
    scheduled_from: datetime | None = None,
    scheduled_to: datetime | None = None,
    status: CampaignStatus = CampaignStatus.PENDING,
    now: datetime,
) -> Campaign:
    starts, ends = _check_window(scheduled_from, scheduled_to)
    campaign = Campaign(
        user_id=owner.id,
        title=title.strip(),
        file_url=file_url,
        status=status,
        scheduled_from=starts,
        scheduled_to=ends,
        created_at=now,
    )
    session.add(campaign)
    session.commit()
    session.refresh(campaign)
    return campaign


def _transition_pending(session: Session, campaign_id: int, target: CampaignStatus) -> Campaign:
    campaign = get_campaign(session, campaign_id)
    if campaign.status != CampaignStatus.PENDING:
        raise CampaignStateError(f"Campaign {campaign_id} is {campaign.status.value}, not pending")
    campaign.status = target
    session.commit()
    session.refresh(campaign)
    return campaign


def approve(session: Session, campaign_id: int) -> Campaign:
    return _transition_pending(session, campaign_id, CampaignStatus.APPROVED)


def deny(session: Session, campaign_id: int) -> Campaign:
    return _transition_pending(session, campaign_id, CampaignStatus.DENIED)


def update_schedule(
    session: Session,
    campaign_id: int,
    scheduled_from: datetime | None,
    scheduled_to: datetime | None,
) -> Campaign:
    campaign = get_campaign(session, campaign_id)
    if campaign.status == CampaignStatus.DELETED:
        raise CampaignStateError(f"Campaign {campaign_id} is deleted")
    campaign.scheduled_from, campaign.scheduled_to = _check_window(scheduled_from, scheduled_to)
    session.commit()
    session.refresh(campaign)
    return campaign


def build_recover_link(token: str, base_url: str | None = None) -> str:
    base = (base_url or str(RECOVERY_SETTINGS["public_base_url"])).rstrip("/")
    return f"{base}/api/v1/campaigns/recover?token={quote(token)}"


def soft_delete(
    session: Session,
    campaign_id: int,
    *,
    owner: User,
    now: datetime,
    notifier: DeletionNotifier,
    base_url: str | None = None,
) -> Campaign:
    """Mark an owner's campaign deleted and hand the recovery link to the notifier.

    A notifier failure is logged and does not undo the delete.
    """
    campaign = session.get(Campaign, campaign_id)
    if campaign is None or campaign.user_id != owner.id or campaign.status == CampaignStatus.DELETED:
        raise CampaignNotFound(f"Campaign {campaign_id} not found")

    token = secrets.token_hex(int(RECOVERY_SETTINGS["token_bytes"]))
    campaign.status = CampaignStatus.DELETED
    campaign.deleted_at = now
    campaign.recover_token = token
    session.commit()
    session.refresh(campaign)

    try:
        notifier.send_campaign_deleted(
            to=owner.email,
            campaign_title=campaign.title,
            recover_link=build_recover_link(token, base_url),
        )
    except Exception as e:
        logger.error("Deletion notice failed", campaign_id=campaign.id, error=str(e), exc_info=True)
    return campaign


def recover(session: Session, token: str, *, now: datetime) -> Campaign:
    if not token:
        raise RecoveryError("Missing token")
    campaign = session.execute(
        select(Campaign).where(Campaign.recover_token == token)
    ).scalars().first()
    if campaign is None:
        raise RecoveryError("Invalid token")
    if campaign.status != CampaignStatus.DELETED:
        raise RecoveryError("Already active")
    deleted_at = as_utc(campaign.deleted_at)
    if deleted_at is None or deleted_at < as_utc(now) - _recovery_window():  # type: ignore[operator]
        raise RecoveryError("Recovery window expired")

    campaign.status = CampaignStatus.PENDING
    campaign.recover_token = None
    campaign.deleted_at = None
    session.commit()
    session.refresh(campaign)
    return campaign


def _remove_dependents(session: Session, campaign_ids: list[int]) -> None:
    if not campaign_ids:
        return
    session.execute(
        delete(campaign_display_targets).where(campaign_display_targets.c.campaign_id.in_(campaign_ids))
    )
    session.execute(delete(DisplayOverride).where(DisplayOverride.campaign_id.in_(campaign_ids)))


def hard_delete(session: Session, campaign_id: int) -> str:
    """Remove the campaign row and everything that references it. Returns its file_url."""
    campaign = get_campaign(session, campaign_id)
    file_url = campaign.file_url
    _remove_dependents(session, [campaign.id])
    session.execute(delete(Campaign).where(Campaign.id == campaign.id))
    session.commit()
    return file_url


def purge_expired_deleted(session: Session, *, now: datetime) -> int:
    cutoff = as_utc(now) - _recovery_window()  # type: ignore[operator]
    ids = list(
        session.execute(
            select(Campaign.id).where(
                Campaign.status == CampaignStatus.DELETED,
                Campaign.deleted_at < cutoff,
            )
        ).scalars().all()
    )
    if not ids:
        return 0
    _remove_dependents(session, ids)
    session.execute(delete(Campaign).where(Campaign.id.in_(ids)))
    session.commit()
    return len(ids)


def list_owned(session: Session, owner: User) -> list[Campaign]:
    rows = session.execute(
        select(Campaign)
        .where(Campaign.user_id == owner.id, Campaign.status != CampaignStatus.DELETED)
        .order_by(Campaign.created_at.desc(), Campaign.id.desc())
    ).scalars().all()
    return list(rows)


def list_by_status(session: Session, status: CampaignStatus) -> list[tuple[Campaign, User | None]]:
    rows = session.execute(
        select(Campaign, User)
        .outerjoin(User, User.id == Campaign.user_id)
        .where(Campaign.status == status)
        .order_by(Campaign.created_at.desc(), Campaign.id.desc())
    ).all()
    return [(c, u) for c, u in rows]


__all__ = [
    "get_campaign",
    "create_campaign",
    "approve",
    "deny",
    "update_schedule",
    "build_recover_link",
    "soft_delete",
    "recover",
    "hard_delete",
    "purge_expired_deleted",
    "list_owned",
    "list_by_status",
]
