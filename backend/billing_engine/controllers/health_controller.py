"""
Health controller.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.controllers.base_controller import BaseController
from billing_engine.schemas.health import HealthResponse
from billing_engine.services.health_service import HealthService


class HealthController(BaseController):
    """Controller for health check operations."""

    def __init__(self, session: AsyncSession):
        self.health_service = HealthService(session)

    async def get_health(self) -> HealthResponse:
        return await self.health_service.get_health()
