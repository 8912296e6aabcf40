"""
Request identity dependency.

Authentication happens upstream; the gateway forwards the resolved user and
role as headers, and the business comes from the route path.
"""

from typing import Optional
from uuid import UUID
from fastapi import Header, HTTPException, status

from billing_engine.schemas.context import RequestContext


async def get_request_context(
    business_id: UUID,
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: str = Header(default="ADMIN"),
) -> RequestContext:
    """Build the caller context used for business scoping and audit fields."""
    user_id = None
    if x_user_id:
        try:
            user_id = UUID(x_user_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid user ID header",
            )
    return RequestContext(business_id=business_id, user_id=user_id, role=x_user_role)
