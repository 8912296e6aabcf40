"""
Quote repository for database operations.
"""

from typing import Optional, List, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from billing_engine.db.repositories.base_repository import BaseRepository
from billing_engine.models.quote import Quote, QuoteItem, QuoteStatus


class QuoteRepository(BaseRepository[Quote]):
    """Repository for quote operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Quote, session)

    def _base_query(self):
        """Base query with eager loading of line items."""
        return (
            select(Quote)
            .options(selectinload(Quote.items))
            .execution_options(populate_existing=True)
        )

    async def get(self, id: UUID) -> Optional[Quote]:
        """Get quote by ID with line items loaded."""
        result = await self.session.execute(self._base_query().where(Quote.id == id))
        return result.scalar_one_or_none()

    async def get_for_business(
        self,
        id: UUID,
        business_id: UUID,
        for_update: bool = False,
    ) -> Optional[Quote]:
        """
        Get a quote of one business.

        With for_update the row stays locked until the transaction ends,
        which serializes concurrent transitions of the same quote.
        """
        query = self._base_query().where(
            Quote.id == id,
            Quote.business_id == business_id,
        )
        if for_update:
            query = query.with_for_update(of=Quote)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_project(
        self,
        business_id: UUID,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Quote]:
        """List quotes of a project, newest first."""
        query = (
            self._base_query()
            .where(Quote.business_id == business_id, Quote.project_id == project_id)
            .order_by(Quote.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_project(self, business_id: UUID, project_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Quote.id)).where(
                Quote.business_id == business_id,
                Quote.project_id == project_id,
            )
        )
        return result.scalar_one()

    async def find_latest_signed(
        self,
        business_id: UUID,
        project_id: UUID,
        exclude_quote_id: Optional[UUID] = None,
    ) -> Optional[Quote]:
        """Most recently issued SIGNED quote of a project."""
        query = select(Quote).where(
            Quote.business_id == business_id,
            Quote.project_id == project_id,
            Quote.status == QuoteStatus.SIGNED,
        )
        if exclude_quote_id is not None:
            query = query.where(Quote.id != exclude_quote_id)
        # NULL issued_at sorts last on both PostgreSQL and SQLite this way
        query = query.order_by(
            Quote.issued_at.is_(None),
            Quote.issued_at.desc(),
            Quote.created_at.desc(),
        ).limit(1)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def replace_items(self, quote: Quote, items: Sequence[dict]) -> None:
        """Replace every line item of a loaded quote with the given ones."""
        quote.items.clear()
        await self.session.flush()
        for row_order, item in enumerate(items):
            quote.items.append(QuoteItem(row_order=row_order, **item))
        await self.session.flush()
