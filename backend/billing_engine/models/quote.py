"""
Quote model for the billing document lifecycle.
"""

from sqlalchemy import Column, String, Text, Integer, BigInteger, JSON, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from billing_engine.db.base import Base, utcnow
from billing_engine.models.common import PricedLineMixin


class QuoteStatus(str, enum.Enum):
    """Quote status enumeration."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    SIGNED = "SIGNED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class Quote(Base):
    """Quote model. Numbered and snapshotted once, on first issuance."""

    __tablename__ = "quotes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_user_id = Column(UUID(as_uuid=True), nullable=True)
    status = Column(SQLEnum(QuoteStatus), nullable=False, default=QuoteStatus.DRAFT, index=True)
    number = Column(String(50), nullable=True, index=True)

    # Amounts in cents
    currency = Column(String(3), nullable=False, default="EUR")
    deposit_percent = Column(Integer, nullable=False, default=30)
    total_cents = Column(BigInteger, nullable=False, default=0)
    deposit_cents = Column(BigInteger, nullable=False, default=0)
    balance_cents = Column(BigInteger, nullable=False, default=0)

    note = Column(String(2000), nullable=True)
    issued_at = Column(DateTime, nullable=True)
    signed_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String(1000), nullable=True)

    # Frozen at first issuance
    issuer_snapshot_json = Column(JSON, nullable=True)
    client_snapshot_json = Column(JSON, nullable=True)
    prestations_snapshot_text = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    items = relationship("QuoteItem", back_populates="quote", cascade="all, delete-orphan", order_by="QuoteItem.row_order")


class QuoteItem(PricedLineMixin, Base):
    """Line item in a quote."""

    __tablename__ = "quote_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    quote_id = Column(UUID(as_uuid=True), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    quote = relationship("Quote", back_populates="items")
