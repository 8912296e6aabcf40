"""
Project billing API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from billing_engine.controllers.project_controller import ProjectController
from billing_engine.db.session import get_db
from billing_engine.deps.context import get_request_context
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.project import BillingSummaryResponse, ProjectPricingResponse

router = APIRouter()


@router.get("/projects/{project_id}/pricing", response_model=ProjectPricingResponse)
async def get_project_pricing(
    project_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> ProjectPricingResponse:
    """Live pricing of the project's service lines."""
    controller = ProjectController(db)
    return await controller.get_pricing(context, project_id)


@router.get("/projects/{project_id}/billing-summary", response_model=BillingSummaryResponse)
async def get_billing_summary(
    project_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> BillingSummaryResponse:
    """Project total, invoiced, paid and remaining amounts."""
    controller = ProjectController(db)
    return await controller.get_billing_summary(context, project_id)
