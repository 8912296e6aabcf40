"""
Project pricing, billing reference and billing summary tests.
"""

import uuid
from datetime import datetime

import pytest

from billing_engine.core.exceptions import NotFoundError
from billing_engine.models import Project, ProjectServiceLine
from billing_engine.models.invoice import InvoiceStatus
from billing_engine.models.project import ProjectQuoteStatus
from billing_engine.models.quote import QuoteStatus
from billing_engine.schemas.project import BillingSummarySource
from billing_engine.services.billing_reference_service import BillingReferenceService
from billing_engine.services.invoice_service import InvoiceService
from billing_engine.services.pricing_service import PricingService
from billing_engine.services.quote_service import QuoteService


async def signed_quote(session, context, project_id, issued_at=None, lines=None):
    service = QuoteService(session)
    draft = await service.create_quote_draft(context, project_id, lines=lines)
    await service.transition_quote(context, draft.id, QuoteStatus.SENT, issued_at=issued_at)
    return await service.transition_quote(context, draft.id, QuoteStatus.SIGNED)


async def reload_project(session, project_id):
    return await session.get(Project, project_id, populate_existing=True)


# Project pricing


@pytest.mark.asyncio
async def test_project_pricing(test_db_session, context, project):
    pricing = await PricingService(test_db_session).compute_project_pricing(context, project.id)

    assert pricing.currency == "EUR"
    assert pricing.deposit_percent == 30
    assert (pricing.total_cents, pricing.deposit_cents, pricing.balance_cents) == (198000, 59400, 138600)
    assert [line.price_source for line in pricing.items] == ["default", "tjm"]
    assert [line.label for line in pricing.items] == ["Design", "Development day"]
    assert pricing.items[0].unit_price_cents == 9000
    assert pricing.items[0].original_unit_price_cents == 10000
    assert pricing.warnings == []


@pytest.mark.asyncio
async def test_project_pricing_with_overrides(test_db_session, context, hosting_project):
    pricing = await PricingService(test_db_session).compute_project_pricing(context, hosting_project.id)

    line = pricing.items[0]
    assert line.label == "Managed hosting"
    assert line.price_source == "override"
    assert line.unit_label == "/month"
    assert line.total_cents == 30000
    assert pricing.total_cents == 30000
    assert pricing.deposit_cents == 9000


@pytest.mark.asyncio
async def test_unpriced_project_line_warns(test_db_session, context, business, client, catalog):
    audit_project = Project(
        id=uuid.uuid4(),
        business_id=business.id,
        client_id=client.id,
        name="Security audit",
        service_lines=[ProjectServiceLine(service_id=catalog["audit"].id, quantity=1, position=0)],
    )
    test_db_session.add(audit_project)
    await test_db_session.commit()

    pricing = await PricingService(test_db_session).compute_project_pricing(context, audit_project.id)

    assert pricing.total_cents == 0
    assert pricing.items[0].missing_price is True
    assert [warning.label for warning in pricing.warnings] == ["Audit"]


@pytest.mark.asyncio
async def test_project_pricing_is_scoped(test_db_session, foreign_context, project):
    service = PricingService(test_db_session)

    with pytest.raises(NotFoundError):
        await service.compute_project_pricing(foreign_context, project.id)
    with pytest.raises(NotFoundError):
        await service.compute_project_pricing(foreign_context, uuid.uuid4())


# Billing reference


@pytest.mark.asyncio
async def test_signing_sets_the_reference(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project.id)

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id == quote.id
    assert stored.quote_status == ProjectQuoteStatus.SIGNED


@pytest.mark.asyncio
async def test_cancelling_reference_falls_back_to_latest_issued(test_db_session, context, project):
    older = await signed_quote(test_db_session, context, project.id, issued_at=datetime(2024, 1, 1))
    newer = await signed_quote(test_db_session, context, project.id, issued_at=datetime(2024, 2, 1))
    oldest = await signed_quote(test_db_session, context, project.id, issued_at=datetime(2023, 6, 1))

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id == oldest.id

    await QuoteService(test_db_session).cancel_quote(context, oldest.id, "superseded")

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id == newer.id
    assert stored.quote_status == ProjectQuoteStatus.SIGNED

    await QuoteService(test_db_session).cancel_quote(context, newer.id, "superseded")

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id == older.id


@pytest.mark.asyncio
async def test_cancelling_last_signed_quote_clears_reference(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project.id)

    await QuoteService(test_db_session).cancel_quote(context, quote.id, "client withdrew")

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id is None
    assert stored.quote_status == ProjectQuoteStatus.DRAFT


@pytest.mark.asyncio
async def test_cancelling_other_quote_keeps_reference(test_db_session, context, project):
    first = await signed_quote(test_db_session, context, project.id)
    reference = await signed_quote(test_db_session, context, project.id)

    await QuoteService(test_db_session).cancel_quote(context, first.id, "duplicate")

    stored = await reload_project(test_db_session, project.id)
    assert stored.billing_quote_id == reference.id


@pytest.mark.asyncio
async def test_find_reference_skips_stale_pointer(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project.id)
    other = await QuoteService(test_db_session).create_quote_draft(context, project.id)
    stored = await reload_project(test_db_session, project.id)
    stored.billing_quote_id = other.id
    await test_db_session.commit()

    reference = await BillingReferenceService(test_db_session).find_reference_quote(stored)

    assert reference.id == quote.id


# Billing summary


@pytest.mark.asyncio
async def test_summary_uses_live_pricing_without_reference(test_db_session, context, project):
    summary = await BillingReferenceService(test_db_session).compute_project_billing_summary(context, project.id)

    assert summary.source == BillingSummarySource.PRICING
    assert summary.reference_quote_id is None
    assert (summary.total_cents, summary.deposit_cents, summary.balance_cents) == (198000, 59400, 138600)
    assert (summary.already_invoiced_cents, summary.already_paid_cents, summary.remaining_cents) == (0, 0, 198000)


@pytest.mark.asyncio
async def test_summary_follows_reference_quote(test_db_session, context, project):
    quote = await signed_quote(
        test_db_session,
        context,
        project.id,
        lines=[{"label": "Fixed price", "quantity": 1, "unit_price_cents": 150000}],
    )

    summary = await BillingReferenceService(test_db_session).compute_project_billing_summary(context, project.id)

    assert summary.source == BillingSummarySource.QUOTE
    assert summary.reference_quote_id == quote.id
    assert summary.total_cents == 150000
    assert summary.deposit_cents == 45000
    assert summary.remaining_cents == 150000


@pytest.mark.asyncio
async def test_summary_tracks_invoiced_and_paid(test_db_session, context, project):
    quote = await signed_quote(test_db_session, context, project.id)
    invoice_service = InvoiceService(test_db_session)
    invoice = await invoice_service.derive_invoice_from_quote(context, quote.id)
    summary_service = BillingReferenceService(test_db_session)

    summary = await summary_service.compute_project_billing_summary(context, project.id)
    assert (summary.already_invoiced_cents, summary.already_paid_cents, summary.remaining_cents) == (198000, 0, 0)

    await invoice_service.transition_invoice(context, invoice.id, InvoiceStatus.SENT)
    await invoice_service.transition_invoice(context, invoice.id, InvoiceStatus.PAID)

    summary = await summary_service.compute_project_billing_summary(context, project.id)
    assert summary.already_paid_cents == 198000


@pytest.mark.asyncio
async def test_summary_is_scoped(test_db_session, foreign_context, project):
    with pytest.raises(NotFoundError):
        await BillingReferenceService(test_db_session).compute_project_billing_summary(foreign_context, project.id)
