"""
Invoice repository for database operations.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from billing_engine.db.repositories.base_repository import BaseRepository
from billing_engine.models.invoice import Invoice, InvoiceStatus


class InvoiceRepository(BaseRepository[Invoice]):
    """Repository for invoice operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Invoice, session)

    def _base_query(self):
        """Base query with eager loading of line items."""
        return (
            select(Invoice)
            .options(selectinload(Invoice.items))
            .execution_options(populate_existing=True)
        )

    async def get(self, id: UUID) -> Optional[Invoice]:
        """Get invoice by ID with line items loaded."""
        result = await self.session.execute(self._base_query().where(Invoice.id == id))
        return result.scalar_one_or_none()

    async def get_for_business(
        self,
        id: UUID,
        business_id: UUID,
        for_update: bool = False,
    ) -> Optional[Invoice]:
        """Get an invoice of one business, optionally row-locked."""
        query = self._base_query().where(
            Invoice.id == id,
            Invoice.business_id == business_id,
        )
        if for_update:
            query = query.with_for_update(of=Invoice)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_quote(self, business_id: UUID, quote_id: UUID) -> Optional[Invoice]:
        """Invoice derived from a quote, if any."""
        result = await self.session.execute(
            select(Invoice).where(
                Invoice.business_id == business_id,
                Invoice.quote_id == quote_id,
            )
        )
        return result.scalar_one_or_none()

    async def exists_for_quote(self, quote_id: UUID) -> bool:
        """Whether any invoice, in any business, references the quote."""
        result = await self.session.execute(
            select(func.count(Invoice.id)).where(Invoice.quote_id == quote_id)
        )
        return result.scalar_one() > 0

    async def list_by_project(
        self,
        business_id: UUID,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Invoice]:
        """List invoices of a project, newest first."""
        query = (
            self._base_query()
            .where(Invoice.business_id == business_id, Invoice.project_id == project_id)
            .order_by(Invoice.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def sum_invoiced(self, business_id: UUID, project_id: UUID) -> int:
        """Total of every non-cancelled invoice of a project."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Invoice.total_cents), 0)).where(
                Invoice.business_id == business_id,
                Invoice.project_id == project_id,
                Invoice.status != InvoiceStatus.CANCELLED,
            )
        )
        return int(result.scalar_one())

    async def sum_paid(self, business_id: UUID, project_id: UUID) -> int:
        """Total of every paid invoice of a project."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Invoice.total_cents), 0)).where(
                Invoice.business_id == business_id,
                Invoice.project_id == project_id,
                Invoice.status == InvoiceStatus.PAID,
            )
        )
        return int(result.scalar_one())

    async def count_by_project(self, business_id: UUID, project_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Invoice.id)).where(
                Invoice.business_id == business_id,
                Invoice.project_id == project_id,
            )
        )
        return result.scalar_one()
