"""
Health service.
Reports uptime and database connectivity.
"""

import time
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.config import settings
from billing_engine.db.repositories.health_repository import HealthRepository
from billing_engine.schemas.health import HealthResponse
from billing_engine.services.base_service import BaseService

_STARTED_AT = time.time()


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(self, session: AsyncSession):
        self.health_repo = HealthRepository(session)

    async def get_health(self) -> HealthResponse:
        uptime_seconds = int(time.time() - _STARTED_AT)

        checks = {}
        checks["database"] = "ok" if await self.health_repo.check_database() else "error"

        status = "ok" if all(check == "ok" for check in checks.values()) else "degraded"

        return HealthResponse(
            status=status,
            version=settings.VERSION,
            uptime=f"PT{uptime_seconds}S",  # ISO 8601 duration
            checks=checks,
        )
