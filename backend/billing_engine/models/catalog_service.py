"""
Catalog service model: the business's priced offering.
"""

from sqlalchemy import Column, String, BigInteger, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
import uuid

from billing_engine.db.base import Base, utcnow


class CatalogService(Base):
    """A sellable service with optional default and daily-rate prices."""

    __tablename__ = "catalog_services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(50), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    default_price_cents = Column(BigInteger, nullable=True)
    daily_rate_cents = Column(BigInteger, nullable=True)  # TJM fallback
    created_at = Column(DateTime, nullable=False, default=utcnow)
