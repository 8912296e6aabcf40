"""
Quote and invoice transition table tests.
"""

import itertools

import pytest

from billing_engine.models.invoice import InvoiceStatus
from billing_engine.models.quote import QuoteStatus
from billing_engine.utils.lifecycle import (
    DocumentPhase,
    can_transition_invoice,
    can_transition_quote,
    quote_phase,
)

ALLOWED_QUOTE_TRANSITIONS = {
    (QuoteStatus.DRAFT, QuoteStatus.SENT),
    (QuoteStatus.DRAFT, QuoteStatus.CANCELLED),
    (QuoteStatus.SENT, QuoteStatus.SIGNED),
    (QuoteStatus.SENT, QuoteStatus.CANCELLED),
    (QuoteStatus.SENT, QuoteStatus.EXPIRED),
    (QuoteStatus.SIGNED, QuoteStatus.CANCELLED),
}

ALLOWED_INVOICE_TRANSITIONS = {
    (InvoiceStatus.DRAFT, InvoiceStatus.SENT),
    (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED),
    (InvoiceStatus.SENT, InvoiceStatus.PAID),
    (InvoiceStatus.SENT, InvoiceStatus.CANCELLED),
}


@pytest.mark.parametrize("current,target", list(itertools.product(QuoteStatus, QuoteStatus)))
def test_quote_transition_table(current, target):
    assert can_transition_quote(current, target) == ((current, target) in ALLOWED_QUOTE_TRANSITIONS)


@pytest.mark.parametrize("current,target", list(itertools.product(InvoiceStatus, InvoiceStatus)))
def test_invoice_transition_table(current, target):
    assert can_transition_invoice(current, target) == ((current, target) in ALLOWED_INVOICE_TRANSITIONS)


def test_quote_phases():
    assert quote_phase(QuoteStatus.DRAFT) == DocumentPhase.EDITABLE
    assert quote_phase(QuoteStatus.SENT) == DocumentPhase.ISSUED
    for status in (QuoteStatus.SIGNED, QuoteStatus.CANCELLED, QuoteStatus.EXPIRED):
        assert quote_phase(status) == DocumentPhase.LOCKED
