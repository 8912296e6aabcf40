"""
Document numbering.

Numbers come from a per-business, per-document-type counter that is
incremented inside the caller's transaction. A number is handed out only
when a document is first issued, and never reused afterwards, even if that
document is later cancelled.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.config import settings
from billing_engine.core.exceptions import NotFoundError
from billing_engine.db.base import utcnow
from billing_engine.db.repositories.business_repository import BusinessRepository
from billing_engine.db.repositories.numbering_repository import DocumentSequenceRepository
from billing_engine.models.business import Business
from billing_engine.models.common import DocumentType
from billing_engine.services.base_service import BaseService

logger = logging.getLogger(__name__)


def document_prefix(document_type: DocumentType, business: Optional[Business] = None) -> str:
    """Business-specific prefix, falling back to the configured default."""
    if document_type == DocumentType.QUOTE:
        custom = business.quote_prefix if business is not None else None
        default = settings.QUOTE_NUMBER_PREFIX
    else:
        custom = business.invoice_prefix if business is not None else None
        default = settings.INVOICE_NUMBER_PREFIX
    custom = (custom or "").strip()
    return custom or default


def format_document_number(prefix: str, value: int, reference_date: Optional[datetime] = None) -> str:
    """
    Render a sequence value, e.g. "Q-0001", or "Q-2025-0001" when numbers
    carry the year of issuance.
    """
    sequence = f"{value:0{settings.DOCUMENT_NUMBER_PADDING}d}"
    if settings.DOCUMENT_NUMBER_INCLUDE_YEAR:
        year = (reference_date or utcnow()).year
        return f"{prefix}-{year}-{sequence}"
    return f"{prefix}-{sequence}"


class NumberingService(BaseService):
    """Service assigning sequential document numbers."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.sequence_repo = DocumentSequenceRepository(session)
        self.business_repo = BusinessRepository(session)

    async def assign(
        self,
        document_type: DocumentType,
        business_id: UUID,
        reference_date: Optional[datetime] = None,
    ) -> str:
        """
        Take the next number for (business, document type).

        Must run inside the transaction that persists the issued status, so
        a rollback releases the counter increment along with everything else.
        """
        business = await self.business_repo.get(business_id)
        if business is None:
            raise NotFoundError("Business not found", details={"business_id": str(business_id)})

        value = await self.sequence_repo.next_value(business_id, document_type)
        number = format_document_number(document_prefix(document_type, business), value, reference_date)

        logger.info(
            "Document number assigned",
            extra={
                "business_id": str(business_id),
                "document_type": document_type.value,
                "number": number,
            },
        )
        return number
