"""
Status transition tables and editability phases for quotes and invoices.
"""

from typing import Dict, FrozenSet
import enum

from billing_engine.models.quote import QuoteStatus
from billing_engine.models.invoice import InvoiceStatus


class DocumentPhase(str, enum.Enum):
    """
    What may still change on a document.

    EDITABLE: lines, amounts and metadata.
    ISSUED: metadata only; lines and amounts are frozen.
    LOCKED: nothing.
    """
    EDITABLE = "EDITABLE"
    ISSUED = "ISSUED"
    LOCKED = "LOCKED"


QUOTE_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT, QuoteStatus.CANCELLED}),
    QuoteStatus.SENT: frozenset({QuoteStatus.SIGNED, QuoteStatus.CANCELLED, QuoteStatus.EXPIRED}),
    QuoteStatus.SIGNED: frozenset({QuoteStatus.CANCELLED}),
    QuoteStatus.CANCELLED: frozenset(),
    QuoteStatus.EXPIRED: frozenset(),
}

INVOICE_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

QUOTE_PHASES: Dict[QuoteStatus, DocumentPhase] = {
    QuoteStatus.DRAFT: DocumentPhase.EDITABLE,
    QuoteStatus.SENT: DocumentPhase.ISSUED,
    QuoteStatus.SIGNED: DocumentPhase.LOCKED,
    QuoteStatus.CANCELLED: DocumentPhase.LOCKED,
    QuoteStatus.EXPIRED: DocumentPhase.LOCKED,
}

INVOICE_ELIGIBLE_QUOTE_STATUSES: FrozenSet[QuoteStatus] = frozenset({QuoteStatus.SENT, QuoteStatus.SIGNED})

DELETABLE_QUOTE_STATUSES: FrozenSet[QuoteStatus] = frozenset({QuoteStatus.DRAFT, QuoteStatus.CANCELLED})


def can_transition_quote(current: QuoteStatus, target: QuoteStatus) -> bool:
    return target in QUOTE_TRANSITIONS[current]


def can_transition_invoice(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in INVOICE_TRANSITIONS[current]


def quote_phase(status: QuoteStatus) -> DocumentPhase:
    return QUOTE_PHASES[status]
