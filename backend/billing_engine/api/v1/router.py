"""
API v1 router that aggregates all endpoint routers.
Billing routes are scoped to one business through the path.
"""

from fastapi import APIRouter

from billing_engine.api.v1.endpoints import (
    health,
    quotes,
    invoices,
    projects,
)

BUSINESS_PREFIX = "/businesses/{business_id}"

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(quotes.router, prefix=BUSINESS_PREFIX, tags=["quotes"])
api_router.include_router(invoices.router, prefix=BUSINESS_PREFIX, tags=["invoices"])
api_router.include_router(projects.router, prefix=BUSINESS_PREFIX, tags=["projects"])
