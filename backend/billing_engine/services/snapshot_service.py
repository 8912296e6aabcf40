"""
Snapshot freezing for issued documents.
"""

import logging
from typing import Union
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.exceptions import NotFoundError
from billing_engine.db.repositories.business_repository import BusinessRepository, ClientRepository
from billing_engine.db.repositories.project_repository import ProjectRepository
from billing_engine.models.invoice import Invoice
from billing_engine.models.quote import Quote
from billing_engine.services.base_service import BaseService
from billing_engine.utils.snapshots import (
    build_client_snapshot,
    build_issuer_snapshot,
    build_prestations_snapshot,
)

logger = logging.getLogger(__name__)


class SnapshotService(BaseService):
    """Service filling the issuer, client and scope-of-work snapshots of a document."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.business_repo = BusinessRepository(session)
        self.client_repo = ClientRepository(session)
        self.project_repo = ProjectRepository(session)

    async def freeze(self, document: Union[Quote, Invoice]) -> bool:
        """
        Fill every snapshot the document does not hold yet.

        A snapshot that is already set is never rebuilt, so the document keeps
        the counterparties as they were at its first issuance. Returns True
        when at least one snapshot was written.
        """
        changed = False

        if document.issuer_snapshot_json is None:
            business = await self.business_repo.get(document.business_id)
            if business is None:
                raise NotFoundError("Business not found", details={"business_id": str(document.business_id)})
            document.issuer_snapshot_json = build_issuer_snapshot(business)
            changed = True

        if document.client_snapshot_json is None and document.client_id is not None:
            client = await self.client_repo.get_for_business(document.client_id, document.business_id)
            snapshot = build_client_snapshot(client)
            if snapshot is not None:
                document.client_snapshot_json = snapshot
                changed = True

        if document.prestations_snapshot_text is None:
            project = await self.project_repo.get(document.project_id)
            text = build_prestations_snapshot(project.prestations_text if project else None)
            if text is not None:
                document.prestations_snapshot_text = text
                changed = True

        if changed:
            logger.info(
                "Document snapshots frozen",
                extra={
                    "document_type": type(document).__name__,
                    "document_id": str(document.id),
                    "business_id": str(document.business_id),
                },
            )
        return changed
