"""
Quote service: draft creation, line replacement and the status lifecycle.

Every public write runs in one unit of work, so numbering, snapshots, status
and the project's billing reference are persisted together or not at all.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.config import settings
from billing_engine.core.exceptions import NotFoundError, StateConflictError, ValidationError
from billing_engine.db.base import as_utc_naive, utcnow
from billing_engine.db.repositories.business_repository import BusinessRepository
from billing_engine.db.repositories.invoice_repository import InvoiceRepository
from billing_engine.db.repositories.numbering_repository import DocumentStatusHistoryRepository
from billing_engine.db.repositories.project_repository import ProjectRepository
from billing_engine.db.repositories.quote_repository import QuoteRepository
from billing_engine.db.session import unit_of_work
from billing_engine.models.common import DocumentType
from billing_engine.models.quote import Quote, QuoteItem, QuoteStatus
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.line_item import LineItemInput, PriceWarning
from billing_engine.schemas.project import PricedLine
from billing_engine.schemas.quote import QuoteListResponse, QuoteResponse, QuoteUpdate
from billing_engine.services.base_service import BaseService
from billing_engine.services.billing_reference_service import BillingReferenceService
from billing_engine.services.numbering_service import NumberingService
from billing_engine.services.pricing_service import (
    PricingService,
    business_currency,
    business_deposit_percent,
    coerce_lines,
)
from billing_engine.services.snapshot_service import SnapshotService
from billing_engine.utils.lifecycle import (
    DELETABLE_QUOTE_STATUSES,
    QUOTE_TRANSITIONS,
    DocumentPhase,
    can_transition_quote,
    quote_phase,
)
from billing_engine.utils.totals import compute_totals

logger = logging.getLogger(__name__)


def _item_rows(lines: Sequence[PricedLine]) -> List[dict]:
    return [line.model_dump(exclude={"price_source"}) for line in lines]


def _parse_status(value: Union[QuoteStatus, str]) -> QuoteStatus:
    try:
        return QuoteStatus(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown quote status: {value}",
            details={"allowed": [status.value for status in QuoteStatus]},
        ) from exc


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    if len(note) > settings.NOTE_MAX_LENGTH:
        raise ValidationError(
            f"Note must be at most {settings.NOTE_MAX_LENGTH} characters",
            details={"length": len(note)},
        )
    return note or None


def clean_cancel_reason(reason: Optional[str]) -> str:
    """Stripped cancellation reason; required, and bounded in length."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A cancellation reason is required")
    if len(reason) > settings.CANCEL_REASON_MAX_LENGTH:
        raise ValidationError(
            f"Cancellation reason must be at most {settings.CANCEL_REASON_MAX_LENGTH} characters",
            details={"length": len(reason)},
        )
    return reason


class QuoteService(BaseService):
    """Service for quote operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.quote_repo = QuoteRepository(session)
        self.project_repo = ProjectRepository(session)
        self.business_repo = BusinessRepository(session)
        self.invoice_repo = InvoiceRepository(session)
        self.history_repo = DocumentStatusHistoryRepository(session)
        self.pricing_service = PricingService(session)
        self.numbering_service = NumberingService(session)
        self.snapshot_service = SnapshotService(session)
        self.billing_reference_service = BillingReferenceService(session)

    async def _to_response(self, quote: Quote, warnings: Optional[List[PriceWarning]] = None) -> QuoteResponse:
        """Reload the quote with its items and convert it while the transaction is open."""
        fresh = await self.quote_repo.get(quote.id)
        response = QuoteResponse.model_validate(fresh)
        response.warnings = list(warnings or [])
        return response

    async def _get_locked(self, context: RequestContext, quote_id: UUID) -> Quote:
        quote = await self.quote_repo.get_for_business(quote_id, context.business_id, for_update=True)
        if quote is None:
            raise NotFoundError("Quote not found", details={"quote_id": str(quote_id)})
        return quote

    async def create_quote_draft(
        self,
        context: RequestContext,
        project_id: UUID,
        lines: Optional[Sequence[Union[LineItemInput, dict]]] = None,
        deposit_percent: Optional[int] = None,
        note: Optional[str] = None,
    ) -> QuoteResponse:
        """
        Create a DRAFT quote for a project.

        With lines=None the draft is priced from the project's service lines.
        Lines without any price are kept at 0 and reported as warnings.
        """
        line_inputs = coerce_lines(lines) if lines is not None else None
        if deposit_percent is not None and not 0 <= deposit_percent <= 100:
            raise ValidationError("deposit_percent must be between 0 and 100", details={"deposit_percent": deposit_percent})
        note = _clean_note(note)

        async with unit_of_work(self.session):
            project = await self.pricing_service.load_project(context.business_id, project_id)
            business = await self.business_repo.get(context.business_id)
            if business is None:
                raise NotFoundError("Business not found", details={"business_id": str(context.business_id)})

            if line_inputs is None:
                priced, warnings = self.pricing_service.price_project_lines(project)
            else:
                priced, warnings = await self.pricing_service.price_lines(context.business_id, line_inputs)

            if deposit_percent is None:
                deposit_percent = business_deposit_percent(business)
            totals = compute_totals((line.total_cents for line in priced), deposit_percent)
            now = utcnow()

            quote = Quote(
                business_id=context.business_id,
                project_id=project.id,
                client_id=project.client_id,
                created_by_user_id=context.user_id,
                status=QuoteStatus.DRAFT,
                currency=business_currency(business),
                deposit_percent=deposit_percent,
                total_cents=totals.total_cents,
                deposit_cents=totals.deposit_cents,
                balance_cents=totals.balance_cents,
                note=note,
                expires_at=now + timedelta(days=settings.QUOTE_VALIDITY_DAYS),
                items=[QuoteItem(row_order=index, **row) for index, row in enumerate(_item_rows(priced))],
            )
            self.session.add(quote)
            await self.session.flush()

            await self.history_repo.record(
                context.business_id,
                DocumentType.QUOTE,
                quote.id,
                None,
                QuoteStatus.DRAFT.value,
                changed_by_user_id=context.user_id,
            )

            logger.info(
                "Quote draft created",
                extra={
                    "business_id": str(context.business_id),
                    "project_id": str(project.id),
                    "quote_id": str(quote.id),
                    "line_count": len(priced),
                    "total_cents": totals.total_cents,
                    "missing_price_count": len(warnings),
                },
            )
            return await self._to_response(quote, warnings)

    async def replace_quote_lines(
        self,
        context: RequestContext,
        quote_id: UUID,
        lines: Sequence[Union[LineItemInput, dict]],
    ) -> QuoteResponse:
        """Replace every line of a DRAFT quote and recompute its totals."""
        line_inputs = coerce_lines(lines)

        async with unit_of_work(self.session):
            quote = await self._get_locked(context, quote_id)
            if quote_phase(quote.status) != DocumentPhase.EDITABLE:
                raise StateConflictError(
                    "Line items can only be edited while the quote is DRAFT",
                    details={"quote_id": str(quote.id), "status": quote.status.value},
                )

            priced, warnings = await self.pricing_service.price_lines(context.business_id, line_inputs)
            totals = compute_totals((line.total_cents for line in priced), quote.deposit_percent)

            await self.quote_repo.replace_items(quote, _item_rows(priced))
            quote.total_cents = totals.total_cents
            quote.deposit_cents = totals.deposit_cents
            quote.balance_cents = totals.balance_cents
            await self.session.flush()

            logger.info(
                "Quote lines replaced",
                extra={
                    "business_id": str(context.business_id),
                    "quote_id": str(quote.id),
                    "line_count": len(priced),
                    "total_cents": totals.total_cents,
                },
            )
            return await self._to_response(quote, warnings)

    async def transition_quote(
        self,
        context: RequestContext,
        quote_id: UUID,
        target_status: Union[QuoteStatus, str],
        signed_at: Optional[datetime] = None,
        issued_at: Optional[datetime] = None,
        cancel_reason: Optional[str] = None,
    ) -> QuoteResponse:
        """
        Move a quote to target_status and apply the side effects of entering it.

        Requesting the current status is a no-op, except that SENT fills in
        whatever issuance data is still missing and SIGNED re-asserts the
        project reference.
        """
        target = _parse_status(target_status)
        if signed_at is not None and target != QuoteStatus.SIGNED:
            raise ValidationError("signed_at can only be supplied when signing a quote")
        if issued_at is not None and target != QuoteStatus.SENT:
            raise ValidationError("issued_at can only be supplied when sending a quote")
        if target == QuoteStatus.CANCELLED:
            cancel_reason = clean_cancel_reason(cancel_reason)
        elif cancel_reason is not None:
            raise ValidationError("cancel_reason can only be supplied when cancelling a quote")

        async with unit_of_work(self.session):
            quote = await self._get_locked(context, quote_id)
            current = quote.status

            if current == target:
                if target == QuoteStatus.SENT:
                    await self._enter_sent(quote, as_utc_naive(issued_at))
                elif target == QuoteStatus.SIGNED:
                    await self.billing_reference_service.mark_signed(quote)
                await self.session.flush()
                return await self._to_response(quote)

            if not can_transition_quote(current, target):
                raise StateConflictError(
                    f"Cannot transition quote from {current.value} to {target.value}",
                    details={
                        "quote_id": str(quote.id),
                        "from": current.value,
                        "to": target.value,
                        "allowed": sorted(status.value for status in QUOTE_TRANSITIONS[current]),
                    },
                )

            if target == QuoteStatus.SENT:
                await self._enter_sent(quote, as_utc_naive(issued_at))
            elif target == QuoteStatus.SIGNED:
                if quote.signed_at is None:
                    quote.signed_at = as_utc_naive(signed_at) or utcnow()
            elif target == QuoteStatus.CANCELLED:
                quote.cancelled_at = utcnow()
                quote.cancel_reason = cancel_reason

            quote.status = target
            await self.session.flush()

            if target == QuoteStatus.SIGNED:
                await self.billing_reference_service.mark_signed(quote)
            elif target == QuoteStatus.CANCELLED:
                await self.billing_reference_service.rederive_after_cancel(quote)

            await self.history_repo.record(
                context.business_id,
                DocumentType.QUOTE,
                quote.id,
                current.value,
                target.value,
                changed_by_user_id=context.user_id,
                reason=cancel_reason,
            )

            logger.info(
                "Quote status changed",
                extra={
                    "business_id": str(context.business_id),
                    "quote_id": str(quote.id),
                    "from_status": current.value,
                    "to_status": target.value,
                    "number": quote.number,
                    "user_id": str(context.user_id) if context.user_id else None,
                },
            )
            return await self._to_response(quote)

    async def _enter_sent(self, quote: Quote, issued_at: Optional[datetime]) -> None:
        """Issue a quote: refuse unpriced lines, then stamp, number and snapshot what is missing."""
        unpriced = [item for item in quote.items if item.missing_price]
        if unpriced:
            labels = ", ".join(item.label for item in unpriced)
            raise ValidationError(
                f"Cannot issue a quote with unpriced lines: {labels}",
                details={
                    "quote_id": str(quote.id),
                    "services": [
                        {
                            "service_id": str(item.service_id) if item.service_id else None,
                            "label": item.label,
                        }
                        for item in unpriced
                    ],
                },
            )

        if quote.issued_at is None:
            quote.issued_at = issued_at or utcnow()
        if quote.number is None:
            quote.number = await self.numbering_service.assign(DocumentType.QUOTE, quote.business_id, quote.issued_at)
        await self.snapshot_service.freeze(quote)

    async def cancel_quote(self, context: RequestContext, quote_id: UUID, reason: Optional[str]) -> QuoteResponse:
        """Cancel a quote with a mandatory reason."""
        return await self.transition_quote(context, quote_id, QuoteStatus.CANCELLED, cancel_reason=reason)

    async def update_quote(
        self,
        context: RequestContext,
        quote_id: UUID,
        quote_data: Union[QuoteUpdate, dict],
    ) -> QuoteResponse:
        """Update note, issued_at or expires_at; only fields that were set are applied."""
        if isinstance(quote_data, dict):
            quote_data = QuoteUpdate.model_validate(quote_data)
        changes = quote_data.model_dump(exclude_unset=True)
        if "note" in changes:
            changes["note"] = _clean_note(changes["note"])
        for field in ("issued_at", "expires_at"):
            if field in changes:
                changes[field] = as_utc_naive(changes[field])

        async with unit_of_work(self.session):
            quote = await self._get_locked(context, quote_id)
            if quote_phase(quote.status) == DocumentPhase.LOCKED:
                raise StateConflictError(
                    f"Quote is {quote.status.value} and can no longer be edited",
                    details={"quote_id": str(quote.id), "status": quote.status.value},
                )

            for field, value in changes.items():
                setattr(quote, field, value)
            await self.session.flush()

            logger.info(
                "Quote updated",
                extra={
                    "business_id": str(context.business_id),
                    "quote_id": str(quote.id),
                    "fields": sorted(changes),
                },
            )
            return await self._to_response(quote)

    async def delete_quote(self, context: RequestContext, quote_id: UUID) -> bool:
        """Delete a DRAFT or CANCELLED quote that no invoice references."""
        async with unit_of_work(self.session):
            quote = await self._get_locked(context, quote_id)
            if quote.status not in DELETABLE_QUOTE_STATUSES:
                raise StateConflictError(
                    f"A {quote.status.value} quote cannot be deleted",
                    details={"quote_id": str(quote.id), "status": quote.status.value},
                )
            if await self.invoice_repo.exists_for_quote(quote.id):
                raise StateConflictError(
                    "Quote has an invoice and cannot be deleted",
                    details={"quote_id": str(quote.id)},
                )

            await self.session.delete(quote)
            await self.session.flush()

            logger.info(
                "Quote deleted",
                extra={"business_id": str(context.business_id), "quote_id": str(quote_id)},
            )
            return True

    async def get_quote(self, context: RequestContext, quote_id: UUID) -> QuoteResponse:
        quote = await self.quote_repo.get_for_business(quote_id, context.business_id)
        if quote is None:
            raise NotFoundError("Quote not found", details={"quote_id": str(quote_id)})
        return QuoteResponse.model_validate(quote)

    async def list_project_quotes(
        self,
        context: RequestContext,
        project_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> QuoteListResponse:
        """List a project's quotes, newest first."""
        project = await self.project_repo.get_for_business(project_id, context.business_id)
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": str(project_id)})
        quotes = await self.quote_repo.list_by_project(context.business_id, project_id, skip=skip, limit=limit)
        total = await self.quote_repo.count_by_project(context.business_id, project_id)
        return QuoteListResponse(
            items=[QuoteResponse.model_validate(quote) for quote in quotes],
            total=total,
        )
