"""
Project billing Pydantic schemas.
"""

from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID
import enum

from billing_engine.models.common import BillingUnit, DiscountType
from billing_engine.schemas.line_item import PriceWarning


class PricedLine(BaseModel):
    """A resolved, discounted line ready to be written onto a document."""
    service_id: Optional[UUID] = None
    label: str
    description: Optional[str] = None
    quantity: int
    unit_price_cents: int
    original_unit_price_cents: Optional[int] = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Optional[int] = None
    billing_unit: BillingUnit = BillingUnit.ONE_OFF
    unit_label: Optional[str] = None
    total_cents: int
    missing_price: bool = False
    price_source: str


class ProjectPricingResponse(BaseModel):
    """Live pricing of a project's service lines."""
    business_id: UUID
    project_id: UUID
    client_id: Optional[UUID] = None
    currency: str
    deposit_percent: int
    total_cents: int
    deposit_cents: int
    balance_cents: int
    items: List[PricedLine]
    warnings: List[PriceWarning] = []


class BillingSummarySource(str, enum.Enum):
    QUOTE = "QUOTE"
    PRICING = "PRICING"


class BillingSummaryResponse(BaseModel):
    """What a project is worth and how much of it is invoiced and paid."""
    business_id: UUID
    project_id: UUID
    client_id: Optional[UUID] = None
    currency: str
    source: BillingSummarySource
    reference_quote_id: Optional[UUID] = None
    total_cents: int
    deposit_percent: int
    deposit_cents: int
    balance_cents: int
    already_invoiced_cents: int
    already_paid_cents: int
    remaining_cents: int
