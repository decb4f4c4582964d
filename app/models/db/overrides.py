from __future__ import annotations
"""SQLAlchemy model for manual per-display overrides."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .campaigns import Campaign
from sqlalchemy.sql import func
from app.database import Base

class DisplayOverride(Base):
    __tablename__ = "display_overrides"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    display_id: Mapped[int] = mapped_column(Integer, nullable=False)
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    # Expiry is a read-time filter; rows are never deleted by the register
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="overrides")

    __table_args__ = (
        Index("ix_display_overrides_display_valid_until", "display_id", "valid_until"),
    )
