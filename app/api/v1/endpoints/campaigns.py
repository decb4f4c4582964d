"""
Business campaign endpoints: register creatives, list own, soft delete, recover.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
import time
from app.api.deps import get_db, get_clock, get_notifier, get_request_id, require_business
from app.models.db import User
from app.models.schemas.campaigns import CampaignCreate, CampaignRead
from app.models.schemas.base import ResponseBase
from app.services import campaign_lifecycle as lifecycle
from app.services.errors import CampaignNotFound, InvalidInput, RecoveryError
from app.services.notifications import DeletionNotifier
from app.utils import get_logger, log_business_event, log_performance
from app.utils.time import Clock

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a campaign",
    description="Register an uploaded creative for admin review (status pending)"
)
async def create_campaign(
    campaign_data: CampaignCreate,
    request: Request,
    user: User = Depends(require_business),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> CampaignRead:
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        campaign = lifecycle.create_campaign(
            db,
            owner=user,
            title=campaign_data.title,
            file_url=campaign_data.file_url,
            scheduled_from=campaign_data.scheduled_from,
            scheduled_to=campaign_data.scheduled_to,
            now=clock(),
        )
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(
            "Campaign creation failed with unexpected error",
            title=campaign_data.title,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload failed"
        )

    log_business_event(
        event_type="campaign_submitted",
        details={"campaign_id": campaign.id, "title": campaign.title},
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="create_campaign",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"campaign_id": campaign.id}
    )
    return CampaignRead.model_validate(campaign)

@router.get(
    "/",
    response_model=List[CampaignRead],
    summary="List own campaigns"
)
async def list_campaigns(
    request: Request,
    user: User = Depends(require_business),
    db: Session = Depends(get_db)
) -> List[CampaignRead]:
    """Own campaigns excluding soft-deleted ones, newest first."""
    request_id = get_request_id(request)
    try:
        campaigns = lifecycle.list_owned(db, user)
    except Exception as e:
        logger.error("Campaign list failed", error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch campaigns"
        )
    return [CampaignRead.model_validate(c) for c in campaigns]

@router.get(
    "/recover",
    response_model=ResponseBase,
    summary="Recover a soft-deleted campaign",
    description="The emailed token is the capability; no session required"
)
async def recover_campaign(
    request: Request,
    token: str = Query("", description="Recovery token from the deletion notice"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> ResponseBase:
    request_id = get_request_id(request)
    try:
        campaign = lifecycle.recover(db, token.strip(), now=clock())
    except RecoveryError as e:
        logger.warning("Campaign recovery rejected", reason=str(e), request_id=request_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Campaign recovery failed", error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Recovery failed"
        )

    log_business_event(
        event_type="campaign_recovered",
        details={"campaign_id": campaign.id},
        user_id=campaign.user_id,
        request_id=request_id
    )
    return ResponseBase(
        message="Campaign recovered and awaiting review",
        data={"campaign_id": campaign.id, "status": campaign.status.value}
    )

@router.post(
    "/{campaign_id}/delete",
    response_model=ResponseBase,
    summary="Soft delete own campaign"
)
async def delete_campaign(
    campaign_id: int,
    request: Request,
    user: User = Depends(require_business),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: DeletionNotifier = Depends(get_notifier)
) -> ResponseBase:
    """Mark deleted and send a recovery link valid for the recovery window."""
    request_id = get_request_id(request)
    forwarded_proto = request.headers.get("x-forwarded-proto")
    base_url = f"{forwarded_proto}://{request.headers.get('host')}" if forwarded_proto else str(request.base_url)

    try:
        campaign = lifecycle.soft_delete(
            db,
            campaign_id,
            owner=user,
            now=clock(),
            notifier=notifier,
            base_url=base_url,
        )
    except CampaignNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except Exception as e:
        logger.error("Campaign delete failed", campaign_id=campaign_id, error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Delete failed"
        )

    log_business_event(
        event_type="campaign_soft_deleted",
        details={"campaign_id": campaign.id},
        user_id=user.id,
        request_id=request_id
    )
    return ResponseBase(message="Campaign deleted; a recovery link was sent", data={"campaign_id": campaign.id})
