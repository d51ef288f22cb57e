"""
Database models for manual assets and their private equity cash flows.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Date, DateTime, ForeignKey, Index, JSON, Numeric, String, Text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==============================================================================
# DATABASE MODELS
# ==============================================================================

class ManualAsset(Base):
    """A manually tracked asset owned by a space."""
    __tablename__ = 'manual_assets'

    id = Column(String(36), primary_key=True, default=_new_id)
    space_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    current_value = Column(Numeric(18, 2, asdecimal=False), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    cash_flows = relationship(
        "PrivateEquityCashFlow",
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by=lambda: [PrivateEquityCashFlow.date, PrivateEquityCashFlow.created_at]
    )

    __table_args__ = (
        Index('idx_manual_assets_space_type', 'space_id', 'type'),
    )


class PrivateEquityCashFlow(Base):
    """A capital call, distribution, fee, carry or recallable distribution of a PE asset."""
    __tablename__ = 'private_equity_cash_flows'

    id = Column(String(36), primary_key=True, default=_new_id)
    asset_id = Column(String(36), ForeignKey('manual_assets.id', ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(18, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    flow_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    asset = relationship("ManualAsset", back_populates="cash_flows")

    __table_args__ = (
        Index('idx_pe_cash_flows_asset_date', 'asset_id', 'date'),
    )
