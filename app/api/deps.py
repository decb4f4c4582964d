"""
Dependencies for authentication, database sessions, clock and feed wiring.
"""
from typing import Generator
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import SessionLocal
from app.models.db import User, Campaign
from app.models.db.enums import UserRole
from app.services.feed_resolver import FeedResolver
from app.services.feed_store import SqlFeedStore
from app.services.notifications import AuditLogDeletionNotifier, DeletionNotifier
from app.utils import get_logger
from app.utils.time import Clock, utc_now

logger = get_logger(__name__)
security = HTTPBearer()

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    One session per request, rolled back on error and always closed.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_clock() -> Clock:
    """Wall clock for request handling; tests override this to pin time."""
    return utc_now

def get_notifier() -> DeletionNotifier:
    return AuditLogDeletionNotifier()

def get_feed_resolver(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> FeedResolver:
    return FeedResolver(SqlFeedStore(db), clock)

def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the bearer API key (issued by the login service) to an active user.

    Raises:
        HTTPException: 401 if the key is unknown or the user inactive
    """
    api_key = credentials.credentials

    user = db.query(User).filter(
        User.api_key == api_key,
        User.is_active == True  # noqa: E712
    ).first()

    if not user:
        logger.warning(
            "Authentication failed: invalid or inactive API key",
            api_key_prefix=api_key[:6] + "..." if len(api_key) > 6 else api_key
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug("User authenticated", user_id=user.id, user_role=user.role)
    return user

def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency that requires the ADMIN role."""
    if current_user.role != UserRole.ADMIN:
        logger.warning(
            "Access denied: admin required",
            user_id=current_user.id,
            user_role=current_user.role
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user

def require_business(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency that requires the BUSINESS role (campaign owners)."""
    if current_user.role != UserRole.BUSINESS:
        logger.warning(
            "Access denied: business account required",
            user_id=current_user.id,
            user_role=current_user.role
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Business account required"
        )
    return current_user

def validate_campaign_exists(campaign_id: int, db: Session = Depends(get_db)) -> Campaign:
    """
    Load a campaign by path id or fail with 404.
    """
    campaign = db.get(Campaign, campaign_id)
    if not campaign:
        logger.warning("Campaign validation failed", campaign_id=campaign_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Campaign with id {campaign_id} not found"
        )
    return campaign
