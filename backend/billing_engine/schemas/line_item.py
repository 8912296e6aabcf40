"""
Line item Pydantic schemas shared by quotes and invoices.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Literal, Optional, Union
from datetime import datetime
from uuid import UUID

from billing_engine.models.common import BillingUnit, DiscountType


class NoDiscount(BaseModel):
    """No discount."""
    type: Literal["NONE"] = "NONE"
    value: None = None


class PercentDiscount(BaseModel):
    """Percentage off the unit price, 0-100."""
    type: Literal["PERCENT"]
    value: int = Field(..., ge=0, le=100)


class AmountDiscount(BaseModel):
    """Fixed cents off the unit price."""
    type: Literal["AMOUNT"]
    value: int = Field(..., ge=0)


Discount = Annotated[
    Union[NoDiscount, PercentDiscount, AmountDiscount],
    Field(discriminator="type"),
]


class LineItemInput(BaseModel):
    """
    A line to put on a draft quote.

    unit_price_cents is an explicit price override; when omitted the price
    comes from the catalog service.
    """
    service_id: Optional[UUID] = None
    label: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    quantity: int = Field(default=1, ge=1)
    unit_price_cents: Optional[int] = Field(None, ge=0)
    discount: Discount = Field(default_factory=NoDiscount)
    billing_unit: BillingUnit = BillingUnit.ONE_OFF
    unit_label: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="after")
    def _label_or_service(self):
        if self.label is not None:
            self.label = self.label.strip() or None
        if self.label is None and self.service_id is None:
            raise ValueError("label is required when no service_id is given")
        return self

    @property
    def discount_type(self) -> DiscountType:
        return DiscountType(self.discount.type)


class LineItemResponse(BaseModel):
    """Response schema for a quote or invoice line item."""
    id: UUID
    service_id: Optional[UUID] = None
    label: str
    description: Optional[str] = None
    quantity: int
    unit_price_cents: int
    original_unit_price_cents: Optional[int] = None
    discount_type: DiscountType
    discount_value: Optional[int] = None
    billing_unit: BillingUnit
    unit_label: Optional[str] = None
    total_cents: int
    missing_price: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PriceWarning(BaseModel):
    """A line created without any price. Blocks issuance until fixed."""
    service_id: Optional[UUID] = None
    label: str
    message: str = "No price available for this service"
