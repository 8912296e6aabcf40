"""
Document sequence and status history repositories.
"""

from typing import List, Optional
from uuid import UUID
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from billing_engine.db.repositories.base_repository import BaseRepository
from billing_engine.models.common import DocumentType
from billing_engine.models.numbering import DocumentSequence, DocumentStatusHistory


class DocumentSequenceRepository(BaseRepository[DocumentSequence]):
    """Repository for per-business document counters."""

    def __init__(self, session: AsyncSession):
        super().__init__(DocumentSequence, session)

    async def _ensure_row(self, business_id: UUID, document_type: DocumentType) -> None:
        """Create the counter row at 0 unless it exists; safe under concurrent callers."""
        dialect_name = self.session.get_bind().dialect.name
        if dialect_name == "postgresql":
            insert = postgresql.insert
        elif dialect_name == "sqlite":
            insert = sqlite.insert
        else:
            raise NotImplementedError(f"Document numbering is not supported on {dialect_name}")

        statement = (
            insert(DocumentSequence)
            .values(
                id=uuid.uuid4(),
                business_id=business_id,
                document_type=document_type,
                last_value=0,
            )
            .on_conflict_do_nothing(index_elements=["business_id", "document_type"])
        )
        await self.session.execute(statement)

    async def next_value(self, business_id: UUID, document_type: DocumentType) -> int:
        """
        Atomically increment the counter and return the new value.

        The UPDATE takes a row lock held until commit, so two transactions
        can never read the same value.
        """
        await self._ensure_row(business_id, document_type)
        result = await self.session.execute(
            update(DocumentSequence)
            .where(
                DocumentSequence.business_id == business_id,
                DocumentSequence.document_type == document_type,
            )
            .values(last_value=DocumentSequence.last_value + 1)
            .returning(DocumentSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        return int(result.scalar_one())

    async def current_value(self, business_id: UUID, document_type: DocumentType) -> int:
        """Last value handed out, 0 if none."""
        result = await self.session.execute(
            select(DocumentSequence.last_value).where(
                DocumentSequence.business_id == business_id,
                DocumentSequence.document_type == document_type,
            )
        )
        value: Optional[int] = result.scalar_one_or_none()
        return int(value or 0)


class DocumentStatusHistoryRepository(BaseRepository[DocumentStatusHistory]):
    """Repository for document status history."""

    def __init__(self, session: AsyncSession):
        super().__init__(DocumentStatusHistory, session)

    async def record(
        self,
        business_id: UUID,
        document_type: DocumentType,
        document_id: UUID,
        from_status: Optional[str],
        to_status: str,
        changed_by_user_id: Optional[UUID] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Append one status change."""
        self.session.add(
            DocumentStatusHistory(
                business_id=business_id,
                document_type=document_type,
                document_id=document_id,
                from_status=from_status,
                to_status=to_status,
                changed_by_user_id=changed_by_user_id,
                reason=reason,
            )
        )
        await self.session.flush()

    async def list_for_document(self, document_type: DocumentType, document_id: UUID) -> List[DocumentStatusHistory]:
        result = await self.session.execute(
            select(DocumentStatusHistory)
            .where(
                DocumentStatusHistory.document_type == document_type,
                DocumentStatusHistory.document_id == document_id,
            )
            .order_by(DocumentStatusHistory.changed_at, DocumentStatusHistory.id)
        )
        return list(result.scalars().all())
