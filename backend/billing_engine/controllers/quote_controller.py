"""
Quote controller.
"""

from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.controllers.base_controller import BaseController
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.quote import (
    QuoteCreate,
    QuoteLinesReplace,
    QuoteTransition,
    QuoteUpdate,
    QuoteResponse,
    QuoteListResponse,
)
from billing_engine.services.quote_service import QuoteService


class QuoteController(BaseController):
    """Controller for quote operations."""

    def __init__(self, session: AsyncSession):
        self.quote_service = QuoteService(session)

    async def create_quote(self, context: RequestContext, project_id: UUID, quote_data: QuoteCreate) -> QuoteResponse:
        """Create a draft quote for a project."""
        return await self.quote_service.create_quote_draft(
            context,
            project_id,
            lines=quote_data.lines,
            deposit_percent=quote_data.deposit_percent,
            note=quote_data.note,
        )

    async def list_quotes(
        self,
        context: RequestContext,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> QuoteListResponse:
        return await self.quote_service.list_project_quotes(context, project_id, skip=skip, limit=limit)

    async def get_quote(self, context: RequestContext, quote_id: UUID) -> QuoteResponse:
        return await self.quote_service.get_quote(context, quote_id)

    async def update_quote(self, context: RequestContext, quote_id: UUID, quote_data: QuoteUpdate) -> QuoteResponse:
        return await self.quote_service.update_quote(context, quote_id, quote_data)

    async def replace_lines(self, context: RequestContext, quote_id: UUID, lines_data: QuoteLinesReplace) -> QuoteResponse:
        """Replace the lines of a draft quote."""
        return await self.quote_service.replace_quote_lines(context, quote_id, lines_data.lines)

    async def transition(self, context: RequestContext, quote_id: UUID, transition: QuoteTransition) -> QuoteResponse:
        """Change the status of a quote."""
        return await self.quote_service.transition_quote(
            context,
            quote_id,
            transition.status,
            signed_at=transition.signed_at,
            issued_at=transition.issued_at,
            cancel_reason=transition.cancel_reason,
        )

    async def cancel_quote(self, context: RequestContext, quote_id: UUID, reason: str) -> QuoteResponse:
        return await self.quote_service.cancel_quote(context, quote_id, reason)

    async def delete_quote(self, context: RequestContext, quote_id: UUID) -> bool:
        return await self.quote_service.delete_quote(context, quote_id)
