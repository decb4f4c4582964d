from __future__ import annotations
"""Campaign <-> display targeting entries.

A plain association table: entries have no identity of their own. A campaign
with no rows here is shown on every display.
"""
from sqlalchemy import Integer, Table, ForeignKey, Column
from app.database import Base

campaign_display_targets = Table(
    'campaign_display_targets',
    Base.metadata,
    Column('campaign_id', Integer, ForeignKey('campaigns.id', ondelete="CASCADE"), primary_key=True),
    Column('display_id', Integer, primary_key=True, index=True),
)
