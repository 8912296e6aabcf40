"""
Project billing controller.
"""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.controllers.base_controller import BaseController
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.project import BillingSummaryResponse, ProjectPricingResponse
from billing_engine.services.billing_reference_service import BillingReferenceService
from billing_engine.services.pricing_service import PricingService


class ProjectController(BaseController):
    """Controller for project pricing and billing summaries."""

    def __init__(self, session: AsyncSession):
        self.pricing_service = PricingService(session)
        self.billing_reference_service = BillingReferenceService(session)

    async def get_pricing(self, context: RequestContext, project_id: UUID) -> ProjectPricingResponse:
        return await self.pricing_service.compute_project_pricing(context, project_id)

    async def get_billing_summary(self, context: RequestContext, project_id: UUID) -> BillingSummaryResponse:
        return await self.billing_reference_service.compute_project_billing_summary(context, project_id)
