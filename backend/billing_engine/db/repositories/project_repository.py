"""
Project repository for database operations.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from billing_engine.db.repositories.base_repository import BaseRepository
from billing_engine.models.project import Project, ProjectServiceLine, ProjectQuoteStatus


class ProjectRepository(BaseRepository[Project]):
    """Repository for project operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Project, session)

    async def get_for_business(
        self,
        id: UUID,
        business_id: UUID,
        for_update: bool = False,
    ) -> Optional[Project]:
        """Get a project of one business, optionally row-locked."""
        query = select(Project).where(
            Project.id == id,
            Project.business_id == business_id,
        ).execution_options(populate_existing=True)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_with_service_lines(self, id: UUID, business_id: UUID) -> Optional[Project]:
        """Get project with its service lines and their catalog services loaded."""
        result = await self.session.execute(
            select(Project)
            .options(
                selectinload(Project.service_lines).selectinload(ProjectServiceLine.service),
            )
            .where(
                Project.id == id,
                Project.business_id == business_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def set_billing_reference(
        self,
        project_id: UUID,
        quote_id: Optional[UUID],
        quote_status: ProjectQuoteStatus,
    ) -> None:
        """Point the project at a reference quote, or clear it."""
        await self.session.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(billing_quote_id=quote_id, quote_status=quote_status)
            .execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
