"""
Invoice API endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from billing_engine.controllers.invoice_controller import InvoiceController
from billing_engine.db.session import get_db
from billing_engine.deps.context import get_request_context
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.invoice import (
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceTransition,
    StagedInvoiceCreate,
)

router = APIRouter()


@router.post("/quotes/{quote_id}/invoice", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice_from_quote(
    quote_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Create the invoice of a sent or signed quote."""
    controller = InvoiceController(db)
    return await controller.create_from_quote(context, quote_id)


@router.post(
    "/projects/{project_id}/invoices/staged",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_staged_invoice(
    project_id: UUID,
    staged_data: StagedInvoiceCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Invoice a percentage, an amount, or the remainder of a project."""
    controller = InvoiceController(db)
    return await controller.create_staged(context, project_id, staged_data)


@router.get("/projects/{project_id}/invoices", response_model=InvoiceListResponse)
async def list_invoices(
    project_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InvoiceListResponse:
    """List invoices of a project."""
    controller = InvoiceController(db)
    return await controller.list_invoices(context, project_id, skip=skip, limit=limit)


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Get invoice by ID."""
    controller = InvoiceController(db)
    return await controller.get_invoice(context, invoice_id)


@router.post("/invoices/{invoice_id}/transition", response_model=InvoiceResponse)
async def transition_invoice(
    invoice_id: UUID,
    transition: InvoiceTransition,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Change invoice status."""
    controller = InvoiceController(db)
    return await controller.transition(context, invoice_id, transition)
