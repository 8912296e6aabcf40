"""
Quote Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from billing_engine.models.quote import QuoteStatus
from billing_engine.schemas.line_item import LineItemInput, LineItemResponse, PriceWarning


class QuoteCreate(BaseModel):
    """
    Schema for creating a draft quote.

    When lines is omitted the draft is priced from the project's service lines.
    """
    lines: Optional[List[LineItemInput]] = None
    deposit_percent: Optional[int] = Field(None, ge=0, le=100)
    note: Optional[str] = Field(None, max_length=2000)


class QuoteLinesReplace(BaseModel):
    """Schema for replacing every line of a draft quote."""
    lines: List[LineItemInput] = Field(..., min_length=1)


class QuoteUpdate(BaseModel):
    """Schema for updating quote metadata (all fields optional)."""
    note: Optional[str] = Field(None, max_length=2000)
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class QuoteTransition(BaseModel):
    """Schema for a quote status change."""
    status: QuoteStatus
    issued_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None


class QuoteCancel(BaseModel):
    """Schema for cancelling a quote."""
    reason: str


class QuoteResponse(BaseModel):
    """Schema for quote response."""
    id: UUID
    business_id: UUID
    project_id: UUID
    client_id: Optional[UUID] = None
    status: QuoteStatus
    number: Optional[str] = None
    currency: str
    deposit_percent: int
    total_cents: int
    deposit_cents: int
    balance_cents: int
    note: Optional[str] = None
    issued_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    issuer_snapshot_json: Optional[dict] = None
    client_snapshot_json: Optional[dict] = None
    prestations_snapshot_text: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[LineItemResponse] = []
    warnings: List[PriceWarning] = []

    class Config:
        from_attributes = True


class QuoteListResponse(BaseModel):
    """Schema for quote list response."""
    items: List[QuoteResponse]
    total: int
