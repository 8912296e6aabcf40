"""
Invoice derivation and invoice lifecycle tests.
"""

from datetime import timedelta

import pytest

from billing_engine.core.exceptions import (
    ConcurrencyError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from billing_engine.db.repositories.invoice_repository import InvoiceRepository
from billing_engine.db.repositories.numbering_repository import DocumentStatusHistoryRepository
from billing_engine.models import Business, CatalogService
from billing_engine.models.common import DocumentType
from billing_engine.models.invoice import InvoiceStatus
from billing_engine.models.quote import QuoteStatus
from billing_engine.services.invoice_service import InvoiceService
from billing_engine.services.quote_service import QuoteService


async def sent_quote(session, context, project):
    service = QuoteService(session)
    draft = await service.create_quote_draft(context, project.id)
    return await service.transition_quote(context, draft.id, QuoteStatus.SENT)


async def signed_quote(session, context, project):
    quote = await sent_quote(session, context, project)
    return await QuoteService(session).transition_quote(context, quote.id, QuoteStatus.SIGNED)


# Derivation


@pytest.mark.asyncio
async def test_invoice_copies_quote_verbatim(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project)

    invoice = await InvoiceService(test_db_session).derive_invoice_from_quote(context, quote.id)

    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.quote_id == quote.id
    assert invoice.project_id == quote.project_id
    assert invoice.client_id == quote.client_id
    assert invoice.number is None
    assert (invoice.currency, invoice.deposit_percent) == (quote.currency, quote.deposit_percent)
    assert (invoice.total_cents, invoice.deposit_cents, invoice.balance_cents) == (
        quote.total_cents,
        quote.deposit_cents,
        quote.balance_cents,
    )
    assert invoice.issuer_snapshot_json == quote.issuer_snapshot_json
    assert invoice.client_snapshot_json == quote.client_snapshot_json
    assert invoice.prestations_snapshot_text == quote.prestations_snapshot_text

    fields = ("service_id", "label", "quantity", "unit_price_cents", "original_unit_price_cents",
              "discount_type", "discount_value", "billing_unit", "total_cents")
    assert len(invoice.items) == len(quote.items)
    for invoice_item, quote_item in zip(invoice.items, quote.items):
        assert invoice_item.id != quote_item.id
        for field in fields:
            assert getattr(invoice_item, field) == getattr(quote_item, field)


@pytest.mark.asyncio
async def test_due_date_uses_payment_terms(test_db_session, context, project, business):
    stored = await test_db_session.get(Business, business.id)
    stored.payment_terms_days = 45
    await test_db_session.commit()
    quote = await sent_quote(test_db_session, context, project)

    invoice = await InvoiceService(test_db_session).derive_invoice_from_quote(context, quote.id)

    terms = invoice.due_at - invoice.created_at
    assert timedelta(days=44, hours=23) < terms <= timedelta(days=45)


@pytest.mark.asyncio
async def test_items_are_cloned_not_repriced(test_db_session, context, project, catalog):
    quote = await signed_quote(test_db_session, context, project)

    design = await test_db_session.get(CatalogService, catalog["design"].id)
    design.default_price_cents = 99999
    await test_db_session.commit()

    invoice = await InvoiceService(test_db_session).derive_invoice_from_quote(context, quote.id)

    assert [item.unit_price_cents for item in invoice.items] == [item.unit_price_cents for item in quote.items]
    assert invoice.total_cents == quote.total_cents


@pytest.mark.asyncio
async def test_second_derivation_is_rejected(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    first = await service.derive_invoice_from_quote(context, quote.id)

    with pytest.raises(StateConflictError) as exc_info:
        await service.derive_invoice_from_quote(context, quote.id)

    assert exc_info.value.message == "invoice already exists"
    assert exc_info.value.details["invoice_id"] == str(first.id)


@pytest.mark.asyncio
async def test_race_lost_to_unique_constraint_is_a_concurrency_error(test_db_session, context, project, monkeypatch):
    """A request that passed the pre-check after another one committed hits the unique key."""
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    await service.derive_invoice_from_quote(context, quote.id)

    async def no_existing_invoice(self, business_id, quote_id):
        return None

    monkeypatch.setattr(InvoiceRepository, "get_by_quote", no_existing_invoice)

    with pytest.raises(ConcurrencyError):
        await service.derive_invoice_from_quote(context, quote.id)

    monkeypatch.undo()
    listing = await service.list_project_invoices(context, project.id)
    assert listing.total == 1


@pytest.mark.parametrize("status", [QuoteStatus.DRAFT, QuoteStatus.CANCELLED, QuoteStatus.EXPIRED])
@pytest.mark.asyncio
async def test_only_sent_or_signed_quotes_are_invoiced(test_db_session, context, project, status):
    quote_service = QuoteService(test_db_session)
    quote = await quote_service.create_quote_draft(context, project.id)
    if status == QuoteStatus.CANCELLED:
        await quote_service.cancel_quote(context, quote.id, "dropped")
    elif status == QuoteStatus.EXPIRED:
        await quote_service.transition_quote(context, quote.id, QuoteStatus.SENT)
        await quote_service.transition_quote(context, quote.id, QuoteStatus.EXPIRED)

    with pytest.raises(StateConflictError):
        await InvoiceService(test_db_session).derive_invoice_from_quote(context, quote.id)


@pytest.mark.asyncio
async def test_quote_must_be_the_project_reference(test_db_session, context, project):
    reference = await signed_quote(test_db_session, context, project)
    other = await sent_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)

    with pytest.raises(StateConflictError):
        await service.derive_invoice_from_quote(context, other.id)

    invoice = await service.derive_invoice_from_quote(context, reference.id)
    assert invoice.quote_id == reference.id


@pytest.mark.asyncio
async def test_unsnapshotted_quote_gets_fresh_snapshots(test_db_session, context, project):
    """A SENT quote always carries snapshots; wiping them simulates legacy data."""
    from billing_engine.models.quote import Quote

    quote = await sent_quote(test_db_session, context, project)
    stored = await test_db_session.get(Quote, quote.id)
    stored.issuer_snapshot_json = None
    stored.client_snapshot_json = None
    await test_db_session.commit()

    invoice = await InvoiceService(test_db_session).derive_invoice_from_quote(context, quote.id)

    assert invoice.issuer_snapshot_json["name"] == "Atelier Nord"
    assert invoice.client_snapshot_json["company_name"] == "Client Corp Billing"


@pytest.mark.asyncio
async def test_unknown_or_foreign_quote_is_not_found(test_db_session, context, foreign_context, project):
    import uuid

    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)

    with pytest.raises(NotFoundError):
        await service.derive_invoice_from_quote(context, uuid.uuid4())
    with pytest.raises(NotFoundError):
        await service.derive_invoice_from_quote(foreign_context, quote.id)


# Lifecycle


@pytest.mark.asyncio
async def test_invoice_lifecycle_to_paid(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    invoice = await service.derive_invoice_from_quote(context, quote.id)

    sent = await service.transition_invoice(context, invoice.id, InvoiceStatus.SENT)
    assert sent.number == "INV-0001"
    assert sent.issued_at is not None

    resent = await service.transition_invoice(context, invoice.id, InvoiceStatus.SENT)
    assert resent.number == "INV-0001"

    paid = await service.transition_invoice(context, invoice.id, "PAID")
    assert paid.status == InvoiceStatus.PAID
    assert paid.paid_at is not None
    assert paid.total_cents == invoice.total_cents
    assert [item.id for item in paid.items] == [item.id for item in invoice.items]

    history = await DocumentStatusHistoryRepository(test_db_session).list_for_document(DocumentType.INVOICE, invoice.id)
    assert {entry.to_status for entry in history} == {"DRAFT", "SENT", "PAID"}


@pytest.mark.parametrize(
    "path,target",
    [
        ([], InvoiceStatus.PAID),
        ([InvoiceStatus.SENT], InvoiceStatus.DRAFT),
        ([InvoiceStatus.SENT, InvoiceStatus.PAID], InvoiceStatus.CANCELLED),
        ([InvoiceStatus.CANCELLED], InvoiceStatus.SENT),
    ],
)
@pytest.mark.asyncio
async def test_illegal_invoice_transitions(test_db_session, context, project, path, target):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    invoice = await service.derive_invoice_from_quote(context, quote.id)
    for step in path:
        await service.transition_invoice(context, invoice.id, step)

    with pytest.raises(StateConflictError):
        await service.transition_invoice(context, invoice.id, target)


@pytest.mark.asyncio
async def test_cancelled_invoice_keeps_no_number(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    invoice = await service.derive_invoice_from_quote(context, quote.id)

    cancelled = await service.transition_invoice(context, invoice.id, InvoiceStatus.CANCELLED)

    assert cancelled.cancelled_at is not None
    assert cancelled.number is None


@pytest.mark.asyncio
async def test_unknown_invoice_status(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    invoice = await service.derive_invoice_from_quote(context, quote.id)

    with pytest.raises(ValidationError):
        await service.transition_invoice(context, invoice.id, "REFUNDED")


@pytest.mark.asyncio
async def test_get_and_list_invoices(test_db_session, context, foreign_context, project):
    quote = await signed_quote(test_db_session, context, project)
    service = InvoiceService(test_db_session)
    invoice = await service.derive_invoice_from_quote(context, quote.id)

    fetched = await service.get_invoice(context, invoice.id)
    assert fetched.id == invoice.id
    with pytest.raises(NotFoundError):
        await service.get_invoice(foreign_context, invoice.id)

    listing = await service.list_project_invoices(context, project.id)
    assert [item.id for item in listing.items] == [invoice.id]
