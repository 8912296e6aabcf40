"""
Shared enumerations and columns for priced line items.
"""

from sqlalchemy import Column, String, Integer, BigInteger, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declared_attr
import enum


class DiscountType(str, enum.Enum):
    """Discount type enumeration."""
    NONE = "NONE"
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


class BillingUnit(str, enum.Enum):
    """Billing unit enumeration."""
    ONE_OFF = "ONE_OFF"
    MONTHLY = "MONTHLY"


class DocumentType(str, enum.Enum):
    """Billing document type enumeration."""
    QUOTE = "QUOTE"
    INVOICE = "INVOICE"


class PricedLineMixin:
    """
    Columns shared by quote and invoice items.

    unit_price_cents is the effective (post-discount) unit price frozen when
    the line was written; original_unit_price_cents keeps the pre-discount
    price when a discount applies. total_cents always equals
    quantity * unit_price_cents.
    """

    @declared_attr
    def service_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("catalog_services.id", ondelete="SET NULL"), nullable=True, index=True)

    label = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(BigInteger, nullable=False, default=0)
    original_unit_price_cents = Column(BigInteger, nullable=True)
    discount_type = Column(SQLEnum(DiscountType), nullable=False, default=DiscountType.NONE)
    discount_value = Column(BigInteger, nullable=True)
    billing_unit = Column(SQLEnum(BillingUnit), nullable=False, default=BillingUnit.ONE_OFF)
    unit_label = Column(String(50), nullable=True)
    total_cents = Column(BigInteger, nullable=False, default=0)
    missing_price = Column(Boolean, nullable=False, default=False)
    row_order = Column(Integer, nullable=False, default=0)
