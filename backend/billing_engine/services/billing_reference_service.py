"""
Project billing reference tracking.

A project points at the quote it currently treats as binding. Signing a
quote makes it the reference; cancelling the reference hands it to the most
recently issued remaining SIGNED quote, or clears it.
"""

import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.exceptions import NotFoundError
from billing_engine.db.repositories.invoice_repository import InvoiceRepository
from billing_engine.db.repositories.project_repository import ProjectRepository
from billing_engine.db.repositories.quote_repository import QuoteRepository
from billing_engine.models.project import Project, ProjectQuoteStatus
from billing_engine.models.quote import Quote, QuoteStatus
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.project import BillingSummaryResponse, BillingSummarySource
from billing_engine.services.base_service import BaseService
from billing_engine.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


class BillingReferenceService(BaseService):
    """Service maintaining each project's reference quote."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.project_repo = ProjectRepository(session)
        self.quote_repo = QuoteRepository(session)
        self.invoice_repo = InvoiceRepository(session)
        self.pricing_service = PricingService(session)

    async def mark_signed(self, quote: Quote) -> None:
        """Make a freshly signed quote the reference of its project."""
        await self.project_repo.set_billing_reference(quote.project_id, quote.id, ProjectQuoteStatus.SIGNED)
        logger.info(
            "Project billing reference set",
            extra={
                "business_id": str(quote.business_id),
                "project_id": str(quote.project_id),
                "quote_id": str(quote.id),
            },
        )

    async def rederive_after_cancel(self, quote: Quote) -> Optional[UUID]:
        """
        Re-point a project whose reference quote is being cancelled.

        Must run in the cancellation's transaction. Returns the new reference
        id, or None when the reference was cleared. Projects referencing some
        other quote are left alone.
        """
        project = await self.project_repo.get_for_business(quote.project_id, quote.business_id, for_update=True)
        if project is None or project.billing_quote_id != quote.id:
            return project.billing_quote_id if project is not None else None

        replacement = await self.quote_repo.find_latest_signed(
            quote.business_id,
            quote.project_id,
            exclude_quote_id=quote.id,
        )
        if replacement is not None:
            await self.project_repo.set_billing_reference(project.id, replacement.id, ProjectQuoteStatus.SIGNED)
        else:
            await self.project_repo.set_billing_reference(project.id, None, ProjectQuoteStatus.DRAFT)

        new_reference = replacement.id if replacement is not None else None
        logger.info(
            "Project billing reference re-derived",
            extra={
                "business_id": str(quote.business_id),
                "project_id": str(project.id),
                "cancelled_quote_id": str(quote.id),
                "new_reference_id": str(new_reference) if new_reference else None,
            },
        )
        return new_reference

    async def find_reference_quote(self, project: Project) -> Optional[Quote]:
        """The project's billing quote if still SIGNED, else its latest SIGNED quote."""
        if project.billing_quote_id is not None:
            quote = await self.quote_repo.get_for_business(project.billing_quote_id, project.business_id)
            if quote is not None and quote.status == QuoteStatus.SIGNED:
                return quote
        return await self.quote_repo.find_latest_signed(project.business_id, project.id)

    async def summarize(self, project: Project) -> BillingSummaryResponse:
        """Billing summary of a project loaded with its service lines."""
        reference = await self.find_reference_quote(project)
        if reference is not None:
            source = BillingSummarySource.QUOTE
            currency = reference.currency
            total_cents = reference.total_cents
            deposit_percent = reference.deposit_percent
            deposit_cents = reference.deposit_cents
            balance_cents = reference.balance_cents
        else:
            pricing = await self.pricing_service.price_project(project)
            source = BillingSummarySource.PRICING
            currency = pricing.currency
            total_cents = pricing.total_cents
            deposit_percent = pricing.deposit_percent
            deposit_cents = pricing.deposit_cents
            balance_cents = pricing.balance_cents

        invoiced = await self.invoice_repo.sum_invoiced(project.business_id, project.id)
        paid = await self.invoice_repo.sum_paid(project.business_id, project.id)

        return BillingSummaryResponse(
            business_id=project.business_id,
            project_id=project.id,
            client_id=project.client_id,
            currency=currency,
            source=source,
            reference_quote_id=reference.id if reference is not None else None,
            total_cents=total_cents,
            deposit_percent=deposit_percent,
            deposit_cents=deposit_cents,
            balance_cents=balance_cents,
            already_invoiced_cents=invoiced,
            already_paid_cents=paid,
            remaining_cents=max(0, total_cents - invoiced),
        )

    async def compute_project_billing_summary(
        self,
        context: RequestContext,
        project_id: UUID,
    ) -> BillingSummaryResponse:
        """What the project is worth, and how much of it is invoiced and paid."""
        project = await self.project_repo.get_with_service_lines(project_id, context.business_id)
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": str(project_id)})
        return await self.summarize(project)
