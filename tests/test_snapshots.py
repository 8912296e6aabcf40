"""
Snapshot builder tests.
"""

from billing_engine.models import Business, Client
from billing_engine.utils.snapshots import (
    build_client_snapshot,
    build_issuer_snapshot,
    build_prestations_snapshot,
)


def test_issuer_snapshot_carries_identity_banking_and_legal_texts():
    business = Business(
        name="Atelier Nord",
        legal_name="Atelier Nord SAS",
        vat_number="FR123",
        iban="FR76",
        terms_text="  Terms.  ",
        cancellation_text="",
        late_fees_text="Late fees.",
    )
    snapshot = build_issuer_snapshot(business)

    assert snapshot["name"] == "Atelier Nord"
    assert snapshot["legal_name"] == "Atelier Nord SAS"
    assert snapshot["vat_number"] == "FR123"
    assert snapshot["iban"] == "FR76"
    assert snapshot["legal_text"] == "Terms.\nLate fees."
    assert snapshot["late_fees_text"] == "Late fees."


def test_issuer_legal_name_falls_back_to_name():
    snapshot = build_issuer_snapshot(Business(name="Solo"))
    assert snapshot["legal_name"] == "Solo"
    assert snapshot["legal_text"] is None


def test_client_snapshot_prefers_billing_fields():
    client = Client(
        name="Jane",
        company_name="Client Corp",
        email="jane@example.test",
        billing_company_name="Client Corp Billing",
        billing_email="ap@example.test",
        billing_vat_number="FR987",
        billing_city="Paris",
    )
    snapshot = build_client_snapshot(client)

    assert snapshot["name"] == "Jane"
    assert snapshot["company_name"] == "Client Corp Billing"
    assert snapshot["email"] == "ap@example.test"
    assert snapshot["vat_number"] == "FR987"
    assert snapshot["city"] == "Paris"


def test_client_snapshot_of_no_client_is_none():
    assert build_client_snapshot(None) is None


def test_prestations_snapshot_strips_and_drops_blank_text():
    assert build_prestations_snapshot("  Build the site. ") == "Build the site."
    assert build_prestations_snapshot("   ") is None
    assert build_prestations_snapshot(None) is None
