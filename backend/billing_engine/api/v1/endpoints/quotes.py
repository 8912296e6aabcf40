"""
Quote API endpoints.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from billing_engine.controllers.quote_controller import QuoteController
from billing_engine.db.session import get_db
from billing_engine.deps.context import get_request_context
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.quote import (
    QuoteCancel,
    QuoteCreate,
    QuoteLinesReplace,
    QuoteListResponse,
    QuoteResponse,
    QuoteTransition,
    QuoteUpdate,
)

router = APIRouter()


@router.post("/projects/{project_id}/quotes", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote(
    project_id: UUID,
    quote_data: QuoteCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Create a draft quote, priced from the given lines or the project's services."""
    controller = QuoteController(db)
    return await controller.create_quote(context, project_id, quote_data)


@router.get("/projects/{project_id}/quotes", response_model=QuoteListResponse)
async def list_quotes(
    project_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteListResponse:
    """List quotes of a project."""
    controller = QuoteController(db)
    return await controller.list_quotes(context, project_id, skip=skip, limit=limit)


@router.get("/quotes/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Get quote by ID."""
    controller = QuoteController(db)
    return await controller.get_quote(context, quote_id)


@router.patch("/quotes/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: UUID,
    quote_data: QuoteUpdate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Update quote note and dates."""
    controller = QuoteController(db)
    return await controller.update_quote(context, quote_id, quote_data)


@router.put("/quotes/{quote_id}/lines", response_model=QuoteResponse)
async def replace_quote_lines(
    quote_id: UUID,
    lines_data: QuoteLinesReplace,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Replace every line of a draft quote."""
    controller = QuoteController(db)
    return await controller.replace_lines(context, quote_id, lines_data)


@router.post("/quotes/{quote_id}/transition", response_model=QuoteResponse)
async def transition_quote(
    quote_id: UUID,
    transition: QuoteTransition,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Change quote status."""
    controller = QuoteController(db)
    return await controller.transition(context, quote_id, transition)


@router.post("/quotes/{quote_id}/cancel", response_model=QuoteResponse)
async def cancel_quote(
    quote_id: UUID,
    cancel_data: QuoteCancel,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Cancel a quote."""
    controller = QuoteController(db)
    return await controller.cancel_quote(context, quote_id, cancel_data.reason)


@router.delete("/quotes/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(
    quote_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a draft or cancelled quote."""
    controller = QuoteController(db)
    await controller.delete_quote(context, quote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
