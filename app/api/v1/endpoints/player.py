"""
Player feed endpoint polled by signage displays.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from app.api.deps import get_feed_resolver, get_request_id
from app.config import FEED_SETTINGS
from app.models.schemas.base import ErrorResponse
from app.models.schemas.feed import FeedResponse
from app.services.errors import FeedUnavailable
from app.services.feed_resolver import FeedResolver
from app.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)

def _parse_int(raw: Optional[str]) -> Optional[int]:
    # Players are often misconfigured; anything unparsable means "use the default"
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None

def _feed_failed(exc: Exception) -> JSONResponse:
    body = ErrorResponse(error=FeedUnavailable.code)
    if FEED_SETTINGS["diagnostics"]:
        body.detail = f"{type(exc).__name__}: {exc}"
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(exclude_none=True),
    )

@router.get(
    "/feed",
    response_model=FeedResponse,
    responses={503: {"model": ErrorResponse, "description": "Feed could not be resolved; retry on the next poll"}},
    summary="Resolve a display's playlist",
    description="Approved, in-window campaigns visible to the display, with any live override first"
)
async def get_feed(
    request: Request,
    display: Optional[str] = Query(None, description="Display id; clamped to the configured displays"),
    limit: Optional[str] = Query(None, description="Max organically ranked items (default 100, cap 200)"),
    resolver: FeedResolver = Depends(get_feed_resolver)
):
    """Return the playlist plus server time, or a structured feed_failed error."""
    request_id = get_request_id(request)
    try:
        result = resolver.resolve_feed(_parse_int(display), _parse_int(limit))
    except FeedUnavailable as e:
        logger.error("Feed unavailable", display=display, error=str(e), request_id=request_id)
        return _feed_failed(e)
    except Exception as e:
        logger.error(
            "Feed resolution failed with unexpected error",
            display=display,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        return _feed_failed(e)

    if result.degraded:
        logger.warning("Degraded feed served", display=result.display, request_id=request_id)

    return FeedResponse(**result.to_response())
