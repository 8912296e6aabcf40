"""
Issuer and client snapshot builders.

A snapshot is a plain JSON-serializable dict copied onto a document when it
is first issued, so the document keeps showing the counterparties as they
were at that moment.
"""

from typing import Optional

from billing_engine.models.business import Business
from billing_engine.models.client import Client


_LEGAL_TEXT_FIELDS = (
    "billing_legal_text",
    "terms_text",
    "payment_terms_text",
    "cancellation_text",
    "late_fees_text",
    "fixed_indemnity_text",
    "legal_mentions_text",
)


def build_issuer_snapshot(business: Business) -> dict:
    """Snapshot the issuing business's legal identity."""
    legal_parts = [
        text.strip()
        for text in (getattr(business, field) for field in _LEGAL_TEXT_FIELDS)
        if isinstance(text, str) and text.strip()
    ]
    snapshot = {
        "name": business.name,
        "legal_name": business.legal_name or business.name or None,
        "website_url": business.website_url,
        "registration_number": business.registration_number,
        "vat_number": business.vat_number,
        "address_line1": business.address_line1,
        "address_line2": business.address_line2,
        "postal_code": business.postal_code,
        "city": business.city,
        "country_code": business.country_code,
        "email": business.billing_email,
        "phone": business.billing_phone,
        "iban": business.iban,
        "bic": business.bic,
        "bank_name": business.bank_name,
        "account_holder": business.account_holder,
        "legal_text": "\n".join(legal_parts) if legal_parts else None,
    }
    for field in _LEGAL_TEXT_FIELDS:
        snapshot[field] = getattr(business, field)
    return snapshot


def build_client_snapshot(client: Optional[Client]) -> Optional[dict]:
    """Snapshot a client's billing identity, preferring billing fields over contact fields."""
    if client is None:
        return None
    return {
        "name": client.billing_contact_name or client.name,
        "company_name": client.billing_company_name or client.company_name,
        "email": client.billing_email or client.email,
        "phone": client.billing_phone or client.phone,
        "vat_number": client.billing_vat_number,
        "reference": client.billing_reference,
        "address": client.address,
        "address_line1": client.billing_address_line1,
        "address_line2": client.billing_address_line2,
        "postal_code": client.billing_postal_code,
        "city": client.billing_city,
        "country_code": client.billing_country_code,
    }


def build_prestations_snapshot(prestations_text: Optional[str]) -> Optional[str]:
    text = (prestations_text or "").strip()
    return text or None
