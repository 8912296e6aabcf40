"""
Invoice controller.
"""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.controllers.base_controller import BaseController
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.invoice import (
    InvoiceResponse,
    InvoiceListResponse,
    InvoiceTransition,
    StagedInvoiceCreate,
)
from billing_engine.services.invoice_service import InvoiceService


class InvoiceController(BaseController):
    """Controller for invoice operations."""

    def __init__(self, session: AsyncSession):
        self.invoice_service = InvoiceService(session)

    async def create_from_quote(self, context: RequestContext, quote_id: UUID) -> InvoiceResponse:
        """Derive the invoice of a quote."""
        return await self.invoice_service.derive_invoice_from_quote(context, quote_id)

    async def create_staged(
        self,
        context: RequestContext,
        project_id: UUID,
        staged_data: StagedInvoiceCreate,
    ) -> InvoiceResponse:
        return await self.invoice_service.create_staged_invoice(
            context,
            project_id,
            staged_data.mode,
            staged_data.value,
        )

    async def get_invoice(self, context: RequestContext, invoice_id: UUID) -> InvoiceResponse:
        return await self.invoice_service.get_invoice(context, invoice_id)

    async def list_invoices(
        self,
        context: RequestContext,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> InvoiceListResponse:
        return await self.invoice_service.list_project_invoices(context, project_id, skip=skip, limit=limit)

    async def transition(self, context: RequestContext, invoice_id: UUID, transition: InvoiceTransition) -> InvoiceResponse:
        return await self.invoice_service.transition_invoice(context, invoice_id, transition.status)
