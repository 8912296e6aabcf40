"""
Invoice model.
"""

from sqlalchemy import Column, String, Text, Integer, BigInteger, JSON, ForeignKey, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from billing_engine.db.base import Base, utcnow
from billing_engine.models.common import PricedLineMixin


class InvoiceStatus(str, enum.Enum):
    """Invoice status enumeration."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class Invoice(Base):
    """Invoice model. At most one invoice per quote."""

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("business_id", "quote_id", name="uq_invoice_business_quote"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    quote_id = Column(UUID(as_uuid=True), ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=True, unique=True)
    created_by_user_id = Column(UUID(as_uuid=True), nullable=True)
    status = Column(SQLEnum(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT, index=True)
    number = Column(String(50), nullable=True, index=True)

    # Amounts in cents, copied from the source document and never recomputed
    currency = Column(String(3), nullable=False, default="EUR")
    deposit_percent = Column(Integer, nullable=False, default=0)
    total_cents = Column(BigInteger, nullable=False, default=0)
    deposit_cents = Column(BigInteger, nullable=False, default=0)
    balance_cents = Column(BigInteger, nullable=False, default=0)

    note = Column(String(2000), nullable=True)
    issued_at = Column(DateTime, nullable=True)
    due_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    issuer_snapshot_json = Column(JSON, nullable=True)
    client_snapshot_json = Column(JSON, nullable=True)
    prestations_snapshot_text = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.row_order")


class InvoiceItem(PricedLineMixin, Base):
    """Line item in an invoice, cloned from its quote item."""

    __tablename__ = "invoice_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")
