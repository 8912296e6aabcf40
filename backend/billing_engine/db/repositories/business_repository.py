"""
Business, client and catalog service repositories.
"""

from typing import Iterable, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from billing_engine.db.repositories.base_repository import BaseRepository
from billing_engine.models.business import Business
from billing_engine.models.client import Client
from billing_engine.models.catalog_service import CatalogService


class BusinessRepository(BaseRepository[Business]):
    """Repository for business operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Business, session)


class ClientRepository(BaseRepository[Client]):
    """Repository for client operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Client, session)


class CatalogServiceRepository(BaseRepository[CatalogService]):
    """Repository for catalog service lookups."""

    def __init__(self, session: AsyncSession):
        super().__init__(CatalogService, session)

    async def list_by_ids(self, business_id: UUID, ids: Iterable[UUID]) -> List[CatalogService]:
        """Catalog services of one business among the given ids."""
        id_list = list(set(ids))
        if not id_list:
            return []
        result = await self.session.execute(
            select(CatalogService).where(
                CatalogService.business_id == business_id,
                CatalogService.id.in_(id_list),
            )
        )
        return list(result.scalars().all())
