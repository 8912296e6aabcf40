"""
Document numbering and status history models.
"""

from sqlalchemy import Column, String, BigInteger, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
import uuid

from billing_engine.db.base import Base, utcnow
from billing_engine.models.common import DocumentType


class DocumentSequence(Base):
    """Per-business, per-document-type counter. last_value is the last number handed out."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("business_id", "document_type", name="uq_document_sequence_business_type"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(SQLEnum(DocumentType), nullable=False)
    last_value = Column(BigInteger, nullable=False, default=0)


class DocumentStatusHistory(Base):
    """Audit trail of quote and invoice status changes."""

    __tablename__ = "document_status_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(SQLEnum(DocumentType), nullable=False)
    document_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by_user_id = Column(UUID(as_uuid=True), nullable=True)
    reason = Column(String(1000), nullable=True)
    changed_at = Column(DateTime, nullable=False, default=utcnow)
