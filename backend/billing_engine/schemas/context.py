"""
Resolved caller identity passed into services.
"""

from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class RequestContext(BaseModel):
    """
    Identity resolved by the authentication layer before the core runs.

    The core only scopes queries by business_id and records user_id on
    audit fields; it performs no permission checks of its own.
    """
    business_id: UUID
    user_id: Optional[UUID] = None
    role: str = "ADMIN"
