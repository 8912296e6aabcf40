"""
Invoice service: derivation from quotes, staged invoices and the invoice lifecycle.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional, Union
from uuid import UUID
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.config import settings
from billing_engine.core.exceptions import (
    ConcurrencyError,
    NotFoundError,
    StateConflictError,
    ValidationError,
    serialize_validation_errors,
)
from billing_engine.db.base import utcnow
from billing_engine.db.repositories.business_repository import BusinessRepository
from billing_engine.db.repositories.invoice_repository import InvoiceRepository
from billing_engine.db.repositories.numbering_repository import DocumentStatusHistoryRepository
from billing_engine.db.repositories.project_repository import ProjectRepository
from billing_engine.db.repositories.quote_repository import QuoteRepository
from billing_engine.db.session import unit_of_work
from billing_engine.models.business import Business
from billing_engine.models.common import BillingUnit, DiscountType, DocumentType
from billing_engine.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from billing_engine.models.quote import QuoteItem
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.invoice import (
    InvoiceListResponse,
    InvoiceResponse,
    StagedInvoiceCreate,
    StagedInvoiceMode,
)
from billing_engine.services.base_service import BaseService
from billing_engine.services.billing_reference_service import BillingReferenceService
from billing_engine.services.numbering_service import NumberingService
from billing_engine.services.snapshot_service import SnapshotService
from billing_engine.utils.lifecycle import (
    INVOICE_ELIGIBLE_QUOTE_STATUSES,
    INVOICE_TRANSITIONS,
    can_transition_invoice,
)
from billing_engine.utils.pricing import round_percent

logger = logging.getLogger(__name__)


def payment_terms_days(business: Optional[Business]) -> int:
    days = business.payment_terms_days if business is not None else None
    return days if days else settings.INVOICE_PAYMENT_TERMS_DAYS


def _clone_item(item: QuoteItem) -> InvoiceItem:
    return InvoiceItem(
        service_id=item.service_id,
        label=item.label,
        description=item.description,
        quantity=item.quantity,
        unit_price_cents=item.unit_price_cents,
        original_unit_price_cents=item.original_unit_price_cents,
        discount_type=item.discount_type,
        discount_value=item.discount_value,
        billing_unit=item.billing_unit,
        unit_label=item.unit_label,
        total_cents=item.total_cents,
        missing_price=item.missing_price,
        row_order=item.row_order,
    )


def _staged_label(request: StagedInvoiceCreate) -> str:
    if request.mode == StagedInvoiceMode.FINAL:
        return "Final invoice"
    if request.mode == StagedInvoiceMode.PERCENT:
        return f"Progress invoice ({request.value}%)"
    return "Progress invoice"


class InvoiceService(BaseService):
    """Service for invoice operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.invoice_repo = InvoiceRepository(session)
        self.quote_repo = QuoteRepository(session)
        self.project_repo = ProjectRepository(session)
        self.business_repo = BusinessRepository(session)
        self.history_repo = DocumentStatusHistoryRepository(session)
        self.numbering_service = NumberingService(session)
        self.snapshot_service = SnapshotService(session)
        self.billing_reference_service = BillingReferenceService(session)

    async def _to_response(self, invoice: Invoice) -> InvoiceResponse:
        fresh = await self.invoice_repo.get(invoice.id)
        return InvoiceResponse.model_validate(fresh)

    async def _insert(self, invoice: Invoice) -> None:
        """Flush a new invoice, reporting a lost uniqueness race as a ConcurrencyError."""
        self.session.add(invoice)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyError(
                "Another request created an invoice for this quote first",
                details={"quote_id": str(invoice.quote_id) if invoice.quote_id else None},
            ) from exc

    async def derive_invoice_from_quote(self, context: RequestContext, quote_id: UUID) -> InvoiceResponse:
        """
        Create the invoice of a SENT or SIGNED quote.

        Amounts, currency, deposit and items are copied from the quote as they
        are, never recomputed from the current catalog. Snapshots are copied
        when the quote has them and built fresh otherwise.
        """
        async with unit_of_work(self.session):
            quote = await self.quote_repo.get_for_business(quote_id, context.business_id, for_update=True)
            if quote is None:
                raise NotFoundError("Quote not found", details={"quote_id": str(quote_id)})

            if quote.status not in INVOICE_ELIGIBLE_QUOTE_STATUSES:
                raise StateConflictError(
                    f"Cannot invoice a {quote.status.value} quote",
                    details={
                        "quote_id": str(quote.id),
                        "status": quote.status.value,
                        "allowed": sorted(status.value for status in INVOICE_ELIGIBLE_QUOTE_STATUSES),
                    },
                )

            existing = await self.invoice_repo.get_by_quote(context.business_id, quote.id)
            if existing is not None:
                raise StateConflictError(
                    "invoice already exists",
                    details={"quote_id": str(quote.id), "invoice_id": str(existing.id)},
                )

            project = await self.project_repo.get_for_business(quote.project_id, context.business_id)
            if project is None:
                raise NotFoundError("Project not found", details={"project_id": str(quote.project_id)})
            if project.billing_quote_id is not None and project.billing_quote_id != quote.id:
                raise StateConflictError(
                    "Quote is not the project's billing reference",
                    details={
                        "quote_id": str(quote.id),
                        "reference_quote_id": str(project.billing_quote_id),
                    },
                )

            business = await self.business_repo.get(context.business_id)
            invoice = Invoice(
                id=uuid.uuid4(),
                business_id=quote.business_id,
                project_id=quote.project_id,
                client_id=quote.client_id,
                quote_id=quote.id,
                created_by_user_id=context.user_id,
                status=InvoiceStatus.DRAFT,
                currency=quote.currency,
                deposit_percent=quote.deposit_percent,
                total_cents=quote.total_cents,
                deposit_cents=quote.deposit_cents,
                balance_cents=quote.balance_cents,
                due_at=utcnow() + timedelta(days=payment_terms_days(business)),
                issuer_snapshot_json=quote.issuer_snapshot_json,
                client_snapshot_json=quote.client_snapshot_json,
                prestations_snapshot_text=quote.prestations_snapshot_text,
                items=[_clone_item(item) for item in quote.items],
            )
            await self.snapshot_service.freeze(invoice)
            await self._insert(invoice)

            await self.history_repo.record(
                context.business_id,
                DocumentType.INVOICE,
                invoice.id,
                None,
                InvoiceStatus.DRAFT.value,
                changed_by_user_id=context.user_id,
            )

            logger.info(
                "Invoice derived from quote",
                extra={
                    "business_id": str(context.business_id),
                    "quote_id": str(quote.id),
                    "invoice_id": str(invoice.id),
                    "total_cents": invoice.total_cents,
                },
            )
            return await self._to_response(invoice)

    async def create_staged_invoice(
        self,
        context: RequestContext,
        project_id: UUID,
        mode: Union[StagedInvoiceMode, str],
        value: Optional[int] = None,
    ) -> InvoiceResponse:
        """
        Invoice part of a project: value% of its total, value cents, or
        everything not invoiced yet (FINAL).

        The invoice holds a single ONE_OFF line, has no deposit, and never
        exceeds what remains to be invoiced.
        """
        try:
            request = StagedInvoiceCreate(mode=mode, value=value)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid staged invoice request",
                details=serialize_validation_errors(exc.errors(include_url=False)),
            ) from exc

        async with unit_of_work(self.session):
            # Lock the project so two staged invoices cannot both take the remainder
            locked = await self.project_repo.get_for_business(project_id, context.business_id, for_update=True)
            if locked is None:
                raise NotFoundError("Project not found", details={"project_id": str(project_id)})
            project = await self.project_repo.get_with_service_lines(project_id, context.business_id)

            summary = await self.billing_reference_service.summarize(project)
            if summary.total_cents <= 0:
                raise ValidationError("Project total is unavailable", details={"project_id": str(project_id)})
            remaining = summary.remaining_cents
            if remaining <= 0:
                raise ValidationError("Nothing left to invoice on this project", details={"project_id": str(project_id)})

            if request.mode == StagedInvoiceMode.FINAL:
                amount = remaining
            elif request.mode == StagedInvoiceMode.PERCENT:
                amount = round_percent(summary.total_cents, request.value)
            else:
                amount = request.value

            if amount <= 0:
                raise ValidationError("Staged invoice amount must be positive", details={"amount_cents": amount})
            if amount > remaining:
                raise ValidationError(
                    "Amount exceeds what remains to be invoiced",
                    details={"amount_cents": amount, "remaining_cents": remaining},
                )

            business = await self.business_repo.get(context.business_id)
            invoice = Invoice(
                id=uuid.uuid4(),
                business_id=context.business_id,
                project_id=project.id,
                client_id=project.client_id,
                quote_id=None,
                created_by_user_id=context.user_id,
                status=InvoiceStatus.DRAFT,
                currency=summary.currency,
                deposit_percent=0,
                total_cents=amount,
                deposit_cents=0,
                balance_cents=amount,
                due_at=utcnow() + timedelta(days=payment_terms_days(business)),
                items=[
                    InvoiceItem(
                        label=_staged_label(request),
                        quantity=1,
                        unit_price_cents=amount,
                        discount_type=DiscountType.NONE,
                        billing_unit=BillingUnit.ONE_OFF,
                        total_cents=amount,
                        row_order=0,
                    )
                ],
            )
            await self.snapshot_service.freeze(invoice)
            await self._insert(invoice)

            await self.history_repo.record(
                context.business_id,
                DocumentType.INVOICE,
                invoice.id,
                None,
                InvoiceStatus.DRAFT.value,
                changed_by_user_id=context.user_id,
            )

            logger.info(
                "Staged invoice created",
                extra={
                    "business_id": str(context.business_id),
                    "project_id": str(project.id),
                    "invoice_id": str(invoice.id),
                    "mode": request.mode.value,
                    "amount_cents": amount,
                    "remaining_cents": remaining - amount,
                },
            )
            return await self._to_response(invoice)

    async def transition_invoice(
        self,
        context: RequestContext,
        invoice_id: UUID,
        target_status: Union[InvoiceStatus, str],
    ) -> InvoiceResponse:
        """
        Move an invoice along DRAFT -> SENT -> PAID, or cancel it.

        Entering SENT stamps issued_at, assigns the invoice number and fills
        missing snapshots, each only once. Amounts and items never change.
        """
        try:
            target = InvoiceStatus(target_status)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown invoice status: {target_status}",
                details={"allowed": [status.value for status in InvoiceStatus]},
            ) from exc

        async with unit_of_work(self.session):
            invoice = await self.invoice_repo.get_for_business(invoice_id, context.business_id, for_update=True)
            if invoice is None:
                raise NotFoundError("Invoice not found", details={"invoice_id": str(invoice_id)})
            current = invoice.status

            if current == target:
                if target == InvoiceStatus.SENT:
                    await self._enter_sent(invoice)
                    await self.session.flush()
                return await self._to_response(invoice)

            if not can_transition_invoice(current, target):
                raise StateConflictError(
                    f"Cannot transition invoice from {current.value} to {target.value}",
                    details={
                        "invoice_id": str(invoice.id),
                        "from": current.value,
                        "to": target.value,
                        "allowed": sorted(status.value for status in INVOICE_TRANSITIONS[current]),
                    },
                )

            if target == InvoiceStatus.SENT:
                await self._enter_sent(invoice)
            elif target == InvoiceStatus.PAID:
                invoice.paid_at = utcnow()
            elif target == InvoiceStatus.CANCELLED:
                invoice.cancelled_at = utcnow()

            invoice.status = target
            await self.session.flush()

            await self.history_repo.record(
                context.business_id,
                DocumentType.INVOICE,
                invoice.id,
                current.value,
                target.value,
                changed_by_user_id=context.user_id,
            )

            logger.info(
                "Invoice status changed",
                extra={
                    "business_id": str(context.business_id),
                    "invoice_id": str(invoice.id),
                    "from_status": current.value,
                    "to_status": target.value,
                    "number": invoice.number,
                },
            )
            return await self._to_response(invoice)

    async def _enter_sent(self, invoice: Invoice) -> None:
        if invoice.issued_at is None:
            invoice.issued_at = utcnow()
        if invoice.number is None:
            invoice.number = await self.numbering_service.assign(
                DocumentType.INVOICE,
                invoice.business_id,
                invoice.issued_at,
            )
        await self.snapshot_service.freeze(invoice)

    async def get_invoice(self, context: RequestContext, invoice_id: UUID) -> InvoiceResponse:
        invoice = await self.invoice_repo.get_for_business(invoice_id, context.business_id)
        if invoice is None:
            raise NotFoundError("Invoice not found", details={"invoice_id": str(invoice_id)})
        return InvoiceResponse.model_validate(invoice)

    async def list_project_invoices(
        self,
        context: RequestContext,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> InvoiceListResponse:
        """List a project's invoices, newest first."""
        project = await self.project_repo.get_for_business(project_id, context.business_id)
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": str(project_id)})
        invoices = await self.invoice_repo.list_by_project(context.business_id, project_id, skip=skip, limit=limit)
        total = await self.invoice_repo.count_by_project(context.business_id, project_id)
        return InvoiceListResponse(
            items=[InvoiceResponse.model_validate(invoice) for invoice in invoices],
            total=total,
        )
