"""
Admin endpoints: review queue, approval, schedule edits, targeting and overrides.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session
import time
from app.api.deps import get_db, get_clock, get_request_id, require_admin, validate_campaign_exists
from app.config import DISPLAY_IDS
from app.models.db import Campaign, User
from app.models.db.enums import CampaignStatus
from app.models.schemas.base import ResponseBase
from app.models.schemas.campaigns import (
    AdminCampaignCreate,
    AdminCampaignRead,
    CampaignRead,
    ScheduleUpdate,
    TargetingRead,
    TargetingUpdate,
)
from app.models.schemas.feed import OverrideIssue, OverrideRead
from app.services import campaign_lifecycle as lifecycle
from app.services.errors import CampaignNotFound, CampaignStateError, InvalidInput
from app.services.override_register import OverrideRegister
from app.services.targeting import TargetingIndex
from app.utils import get_logger, log_business_event, log_performance
from app.utils.time import Clock

router = APIRouter()
logger = get_logger(__name__)

def _admin_rows(rows: list[tuple[Campaign, Optional[User]]]) -> List[AdminCampaignRead]:
    result = []
    for campaign, owner in rows:
        item = AdminCampaignRead.model_validate(campaign)
        if owner is not None:
            item.company_name = owner.company_name
            item.email = owner.email
        result.append(item)
    return result

@router.get("/campaigns/pending", response_model=List[AdminCampaignRead], summary="Campaigns awaiting review")
async def list_pending(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[AdminCampaignRead]:
    return _admin_rows(lifecycle.list_by_status(db, CampaignStatus.PENDING))

@router.get("/campaigns/approved", response_model=List[AdminCampaignRead], summary="Approved campaigns")
async def list_approved(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[AdminCampaignRead]:
    return _admin_rows(lifecycle.list_by_status(db, CampaignStatus.APPROVED))

@router.post(
    "/campaigns/",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an approved campaign",
    description="Admin uploads skip review; optionally attributed to a business account by email"
)
async def admin_create_campaign(
    campaign_data: AdminCampaignCreate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> CampaignRead:
    request_id = get_request_id(request)
    owner = admin
    if campaign_data.user_email:
        email = campaign_data.user_email.strip().lower()
        found = db.query(User).filter(func.lower(User.email) == email).first()
        if found is None:
            logger.warning("Admin upload rejected: unknown owner email", user_email=email, request_id=request_id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown user_email")
        owner = found
    try:
        campaign = lifecycle.create_campaign(
            db,
            owner=owner,
            title=campaign_data.title,
            file_url=campaign_data.file_url,
            scheduled_from=campaign_data.scheduled_from,
            scheduled_to=campaign_data.scheduled_to,
            status=CampaignStatus.APPROVED,
            now=clock(),
        )
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    log_business_event(
        event_type="campaign_created_by_admin",
        details={"campaign_id": campaign.id, "owner_id": owner.id},
        user_id=admin.id,
        request_id=request_id
    )
    return CampaignRead.model_validate(campaign)

def _review(db: Session, campaign_id: int, approve: bool, admin: User, request_id: str) -> ResponseBase:
    try:
        campaign = lifecycle.approve(db, campaign_id) if approve else lifecycle.deny(db, campaign_id)
    except (CampaignNotFound, CampaignStateError) as e:
        logger.warning("Review rejected", campaign_id=campaign_id, reason=str(e), request_id=request_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found or not pending")
    except Exception as e:
        logger.error("Review failed", campaign_id=campaign_id, error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Approve failed" if approve else "Deny failed"
        )

    log_business_event(
        event_type="campaign_approved" if approve else "campaign_denied",
        details={"campaign_id": campaign.id},
        user_id=admin.id,
        request_id=request_id
    )
    return ResponseBase(data={"campaign_id": campaign.id, "status": campaign.status.value})

@router.post("/campaigns/{campaign_id}/approve", response_model=ResponseBase, summary="Approve a pending campaign")
async def approve_campaign(
    campaign_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    return _review(db, campaign_id, True, admin, get_request_id(request))

@router.post("/campaigns/{campaign_id}/deny", response_model=ResponseBase, summary="Deny a pending campaign")
async def deny_campaign(
    campaign_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    return _review(db, campaign_id, False, admin, get_request_id(request))

@router.put("/campaigns/{campaign_id}/schedule", response_model=CampaignRead, summary="Edit a campaign's schedule window")
async def update_schedule(
    campaign_id: int,
    schedule: ScheduleUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> CampaignRead:
    """Deleted campaigns are rejected with 409 by the domain error handler."""
    request_id = get_request_id(request)
    try:
        campaign = lifecycle.update_schedule(db, campaign_id, schedule.scheduled_from, schedule.scheduled_to)
    except CampaignNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    log_business_event(
        event_type="campaign_schedule_updated",
        details={
            "campaign_id": campaign.id,
            "scheduled_from": schedule.scheduled_from,
            "scheduled_to": schedule.scheduled_to,
        },
        user_id=admin.id,
        request_id=request_id
    )
    return CampaignRead.model_validate(campaign)

@router.post("/campaigns/{campaign_id}/delete", response_model=ResponseBase, summary="Permanently delete a campaign")
async def hard_delete_campaign(
    campaign_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    """Removes the row, its targeting entries and overrides. Stored assets belong to the storage service."""
    request_id = get_request_id(request)
    try:
        file_url = lifecycle.hard_delete(db, campaign_id)
    except CampaignNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except Exception as e:
        logger.error("Delete failed", campaign_id=campaign_id, error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Delete failed")

    log_business_event(
        event_type="campaign_hard_deleted",
        details={"campaign_id": campaign_id, "file_url": file_url},
        user_id=admin.id,
        request_id=request_id
    )
    return ResponseBase(data={"campaign_id": campaign_id, "file_url": file_url})

@router.get("/campaigns/{campaign_id}/displays", response_model=TargetingRead, summary="Targeting entries")
async def get_targets(
    admin: User = Depends(require_admin),
    campaign: Campaign = Depends(validate_campaign_exists),
    db: Session = Depends(get_db)
) -> TargetingRead:
    displays = TargetingIndex(db).displays_for(campaign.id)
    return TargetingRead(campaign_id=campaign.id, display_ids=displays, is_global=not displays)

@router.put("/campaigns/{campaign_id}/displays", response_model=TargetingRead, summary="Replace targeting entries")
async def replace_targets(
    targeting: TargetingUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    campaign: Campaign = Depends(validate_campaign_exists),
    db: Session = Depends(get_db)
) -> TargetingRead:
    request_id = get_request_id(request)
    displays = TargetingIndex(db).replace_targets(campaign.id, targeting.display_ids)
    db.commit()
    log_business_event(
        event_type="campaign_targeting_updated",
        details={"campaign_id": campaign.id, "display_ids": displays},
        user_id=admin.id,
        request_id=request_id
    )
    return TargetingRead(campaign_id=campaign.id, display_ids=displays, is_global=not displays)

@router.post(
    "/overrides",
    response_model=OverrideRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send a campaign to a display now",
    description="Puts the campaign at the head of the display's feed for 1-60 minutes (default 10)"
)
async def issue_override(
    payload: OverrideIssue,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> OverrideRead:
    start_time = time.time()
    request_id = get_request_id(request)

    if payload.display_id not in DISPLAY_IDS or db.get(Campaign, payload.campaign_id) is None:
        logger.warning(
            "Override rejected: invalid payload",
            display_id=payload.display_id,
            campaign_id=payload.campaign_id,
            request_id=request_id
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    try:
        override = OverrideRegister(db).issue(payload.display_id, payload.campaign_id, payload.minutes, clock())
    except Exception as e:
        logger.error("Override issue failed", error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="manual_send_failed")

    log_business_event(
        event_type="override_issued",
        details={
            "override_id": override.id,
            "display_id": override.display_id,
            "campaign_id": override.campaign_id,
            "valid_until": override.valid_until,
        },
        user_id=admin.id,
        request_id=request_id
    )
    log_performance(
        operation="issue_override",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"display_id": override.display_id}
    )
    return OverrideRead.model_validate(override)

@router.get("/overrides", response_model=List[OverrideRead], summary="Recent overrides for a display")
async def list_overrides(
    display: int = Query(..., description="Display id"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> List[OverrideRead]:
    rows = OverrideRegister(db).history(display, limit)
    return [OverrideRead.model_validate(r) for r in rows]
