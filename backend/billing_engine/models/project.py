"""
Project model and its priced service lines.
"""

from sqlalchemy import Column, String, Text, Integer, BigInteger, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from billing_engine.db.base import Base, utcnow
from billing_engine.models.common import DiscountType, BillingUnit


class ProjectQuoteStatus(str, enum.Enum):
    """Coarse billing status of a project, driven by its reference quote."""
    DRAFT = "DRAFT"
    SIGNED = "SIGNED"


class Project(Base):
    """Project model."""

    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    prestations_text = Column(Text, nullable=True)  # narrative scope of work

    # Billing reference: the quote this project currently treats as binding.
    # Only ever points at a SIGNED quote of this project, or is null.
    billing_quote_id = Column(
        UUID(as_uuid=True),
        ForeignKey("quotes.id", ondelete="SET NULL", use_alter=True, name="fk_projects_billing_quote_id"),
        nullable=True,
    )
    quote_status = Column(SQLEnum(ProjectQuoteStatus), nullable=False, default=ProjectQuoteStatus.DRAFT)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    service_lines = relationship(
        "ProjectServiceLine",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectServiceLine.position",
    )


class ProjectServiceLine(Base):
    """A catalog service attached to a project, with optional price override."""

    __tablename__ = "project_service_lines"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("catalog_services.id", ondelete="SET NULL"), nullable=True, index=True)
    title_override = Column(String(255), nullable=True)
    description = Column(String(2000), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price_cents = Column(BigInteger, nullable=True)  # per-project override
    discount_type = Column(SQLEnum(DiscountType), nullable=False, default=DiscountType.NONE)
    discount_value = Column(BigInteger, nullable=True)
    billing_unit = Column(SQLEnum(BillingUnit), nullable=False, default=BillingUnit.ONE_OFF)
    unit_label = Column(String(50), nullable=True)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    project = relationship("Project", back_populates="service_lines")
    service = relationship("CatalogService")
