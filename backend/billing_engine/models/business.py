"""
Business (tenant) model carrying the issuer's legal identity and billing settings.
"""

from sqlalchemy import Column, String, Text, Integer, DateTime
from sqlalchemy.dialects.postgresql import UUID
import uuid

from billing_engine.db.base import Base, utcnow


class Business(Base):
    """Business model. Every billing document is issued by exactly one business."""

    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    legal_name = Column(String(255), nullable=True)
    website_url = Column(String(255), nullable=True)
    registration_number = Column(String(50), nullable=True)
    vat_number = Column(String(50), nullable=True)

    # Address
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    country_code = Column(String(2), nullable=True)

    # Billing contact and banking details
    billing_email = Column(String(255), nullable=True)
    billing_phone = Column(String(50), nullable=True)
    iban = Column(String(50), nullable=True)
    bic = Column(String(20), nullable=True)
    bank_name = Column(String(255), nullable=True)
    account_holder = Column(String(255), nullable=True)

    # Legal text blocks printed on documents
    billing_legal_text = Column(Text, nullable=True)
    terms_text = Column(Text, nullable=True)
    payment_terms_text = Column(Text, nullable=True)
    cancellation_text = Column(Text, nullable=True)
    late_fees_text = Column(Text, nullable=True)
    fixed_indemnity_text = Column(Text, nullable=True)
    legal_mentions_text = Column(Text, nullable=True)

    # Billing settings (fall back to application settings when null)
    currency = Column(String(3), nullable=True)
    default_deposit_percent = Column(Integer, nullable=True)
    quote_prefix = Column(String(20), nullable=True)
    invoice_prefix = Column(String(20), nullable=True)
    payment_terms_days = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
