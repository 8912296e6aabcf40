"""
Invoice Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID
import enum

from billing_engine.models.invoice import InvoiceStatus
from billing_engine.schemas.line_item import LineItemResponse


class StagedInvoiceMode(str, enum.Enum):
    """How a staged (progress) invoice amount is chosen."""
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"
    FINAL = "FINAL"


class StagedInvoiceCreate(BaseModel):
    """
    Schema for a staged invoice.

    PERCENT takes value% (1-100) of the project total, AMOUNT takes value
    cents, FINAL takes whatever remains to be invoiced.
    """
    mode: StagedInvoiceMode
    value: Optional[int] = None

    @model_validator(mode="after")
    def _value_matches_mode(self):
        if self.mode == StagedInvoiceMode.PERCENT:
            if self.value is None or not 1 <= self.value <= 100:
                raise ValueError("PERCENT mode requires a value between 1 and 100")
        elif self.mode == StagedInvoiceMode.AMOUNT:
            if self.value is None or self.value <= 0:
                raise ValueError("AMOUNT mode requires a positive value in cents")
        return self


class InvoiceTransition(BaseModel):
    """Schema for an invoice status change."""
    status: InvoiceStatus


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""
    id: UUID
    business_id: UUID
    project_id: UUID
    client_id: Optional[UUID] = None
    quote_id: Optional[UUID] = None
    status: InvoiceStatus
    number: Optional[str] = None
    currency: str
    deposit_percent: int
    total_cents: int
    deposit_cents: int
    balance_cents: int
    note: Optional[str] = None
    issued_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    issuer_snapshot_json: Optional[dict] = None
    client_snapshot_json: Optional[dict] = None
    prestations_snapshot_text: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[LineItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class InvoiceListResponse(BaseModel):
    """Schema for invoice list response."""
    items: List[InvoiceResponse]
    total: int
