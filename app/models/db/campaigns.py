from __future__ import annotations
"""SQLAlchemy model for ad campaigns (one creative plus approval/schedule state)."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .overrides import DisplayOverride
from sqlalchemy.sql import func
from app.database import Base
from .enums import CampaignStatus

class Campaign(Base):
    __tablename__ = "campaigns"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    # Locator handed back by the storage service; never dereferenced here
    file_url: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[CampaignStatus] = mapped_column(Enum(CampaignStatus), default=CampaignStatus.PENDING, index=True)
    scheduled_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Only set while status == DELETED
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    recover_token: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)

    owner: Mapped["User | None"] = relationship("User", back_populates="campaigns")
    overrides: Mapped[list["DisplayOverride"]] = relationship(
        "DisplayOverride", back_populates="campaign", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_campaigns_status_schedule", "status", "scheduled_from", "scheduled_to"),
    )
