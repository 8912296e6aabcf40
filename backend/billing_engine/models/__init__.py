"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from billing_engine.models.common import DiscountType, BillingUnit, DocumentType
from billing_engine.models.business import Business
from billing_engine.models.client import Client
from billing_engine.models.catalog_service import CatalogService
from billing_engine.models.project import Project, ProjectServiceLine, ProjectQuoteStatus
from billing_engine.models.quote import Quote, QuoteItem, QuoteStatus
from billing_engine.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from billing_engine.models.numbering import DocumentSequence, DocumentStatusHistory

__all__ = [
    "DiscountType",
    "BillingUnit",
    "DocumentType",
    "Business",
    "Client",
    "CatalogService",
    "Project",
    "ProjectServiceLine",
    "ProjectQuoteStatus",
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "DocumentSequence",
    "DocumentStatusHistory",
]
