"""
Line pricing against the business catalog.

Turns line inputs and project service lines into priced, discounted lines,
and reports every line that could not be priced as a warning.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from uuid import UUID
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.core.config import settings
from billing_engine.core.exceptions import NotFoundError, ValidationError, serialize_validation_errors
from billing_engine.db.repositories.business_repository import BusinessRepository, CatalogServiceRepository
from billing_engine.db.repositories.project_repository import ProjectRepository
from billing_engine.models.business import Business
from billing_engine.models.catalog_service import CatalogService
from billing_engine.models.common import BillingUnit, DiscountType
from billing_engine.models.project import Project
from billing_engine.schemas.context import RequestContext
from billing_engine.schemas.line_item import LineItemInput, PriceWarning
from billing_engine.schemas.project import PricedLine, ProjectPricingResponse
from billing_engine.services.base_service import BaseService
from billing_engine.utils.pricing import apply_discount, line_total, resolve_unit_price
from billing_engine.utils.totals import compute_totals

logger = logging.getLogger(__name__)

MONTHLY_UNIT_LABEL = "/month"


def business_currency(business: Optional[Business]) -> str:
    return (business.currency if business is not None else None) or settings.DEFAULT_CURRENCY


def business_deposit_percent(business: Optional[Business]) -> int:
    value = business.default_deposit_percent if business is not None else None
    return settings.DEFAULT_DEPOSIT_PERCENT if value is None else value


def coerce_lines(lines: Iterable[Union[LineItemInput, dict]]) -> List[LineItemInput]:
    """Validate raw line payloads, turning schema errors into a ValidationError."""
    try:
        return [
            line if isinstance(line, LineItemInput) else LineItemInput.model_validate(line)
            for line in lines
        ]
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid line items",
            details=serialize_validation_errors(exc.errors(include_url=False)),
        ) from exc


def price_line(
    *,
    service: Optional[CatalogService],
    label: Optional[str],
    description: Optional[str],
    quantity: int,
    override_cents: Optional[int],
    discount_type: DiscountType,
    discount_value: Optional[int],
    billing_unit: BillingUnit,
    unit_label: Optional[str],
) -> PricedLine:
    """Resolve, discount and total a single line."""
    resolution = resolve_unit_price(
        override_cents=override_cents,
        default_cents=service.default_price_cents if service is not None else None,
        daily_rate_cents=service.daily_rate_cents if service is not None else None,
    )
    try:
        discounted = apply_discount(resolution.unit_price_cents, discount_type, discount_value)
        total = line_total(quantity, discounted.unit_price_cents)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"label": label, "quantity": quantity}) from exc

    if not unit_label and billing_unit == BillingUnit.MONTHLY:
        unit_label = MONTHLY_UNIT_LABEL

    return PricedLine(
        service_id=service.id if service is not None else None,
        label=label or (service.name if service is not None else None) or "Service",
        description=description or (service.description if service is not None else None),
        quantity=quantity,
        unit_price_cents=discounted.unit_price_cents,
        original_unit_price_cents=discounted.original_unit_price_cents,
        discount_type=discounted.discount_type,
        discount_value=discounted.discount_value,
        billing_unit=billing_unit,
        unit_label=unit_label or None,
        total_cents=total,
        missing_price=resolution.missing_price,
        price_source=resolution.source.value,
    )


def collect_warnings(lines: Sequence[PricedLine], business_id: UUID) -> List[PriceWarning]:
    warnings = []
    for line in lines:
        if not line.missing_price:
            continue
        logger.warning(
            "Line has no price",
            extra={
                "business_id": str(business_id),
                "service_id": str(line.service_id) if line.service_id else None,
                "label": line.label,
            },
        )
        warnings.append(PriceWarning(service_id=line.service_id, label=line.label))
    return warnings


class PricingService(BaseService):
    """Service pricing lines and projects."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog_repo = CatalogServiceRepository(session)
        self.project_repo = ProjectRepository(session)
        self.business_repo = BusinessRepository(session)

    async def price_lines(
        self,
        business_id: UUID,
        lines: Sequence[LineItemInput],
    ) -> Tuple[List[PricedLine], List[PriceWarning]]:
        """
        Price explicit line inputs against the business catalog.

        Raises NotFoundError when a line names a service the business does
        not own.
        """
        requested = [line.service_id for line in lines if line.service_id is not None]
        services = {
            service.id: service
            for service in await self.catalog_repo.list_by_ids(business_id, requested)
        }
        unknown = sorted({str(service_id) for service_id in requested if service_id not in services})
        if unknown:
            raise NotFoundError("Catalog service not found", details={"service_ids": unknown})

        priced = [
            price_line(
                service=services.get(line.service_id) if line.service_id else None,
                label=line.label,
                description=line.description,
                quantity=line.quantity,
                override_cents=line.unit_price_cents,
                discount_type=line.discount_type,
                discount_value=line.discount.value,
                billing_unit=line.billing_unit,
                unit_label=line.unit_label,
            )
            for line in lines
        ]
        return priced, collect_warnings(priced, business_id)

    def price_project_lines(self, project: Project) -> Tuple[List[PricedLine], List[PriceWarning]]:
        """Price a project's service lines; they must be loaded with their services."""
        priced = [
            price_line(
                service=service_line.service,
                label=service_line.title_override,
                description=service_line.description,
                quantity=service_line.quantity,
                override_cents=service_line.price_cents,
                discount_type=service_line.discount_type or DiscountType.NONE,
                discount_value=service_line.discount_value,
                billing_unit=service_line.billing_unit or BillingUnit.ONE_OFF,
                unit_label=service_line.unit_label,
            )
            for service_line in project.service_lines
        ]
        return priced, collect_warnings(priced, project.business_id)

    async def load_project(self, business_id: UUID, project_id: UUID) -> Project:
        project = await self.project_repo.get_with_service_lines(project_id, business_id)
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": str(project_id)})
        return project

    async def price_project(self, project: Project) -> ProjectPricingResponse:
        """Live pricing of a loaded project with the business defaults."""
        business = await self.business_repo.get(project.business_id)
        priced, warnings = self.price_project_lines(project)
        deposit_percent = business_deposit_percent(business)
        totals = compute_totals((line.total_cents for line in priced), deposit_percent)
        return ProjectPricingResponse(
            business_id=project.business_id,
            project_id=project.id,
            client_id=project.client_id,
            currency=business_currency(business),
            deposit_percent=deposit_percent,
            total_cents=totals.total_cents,
            deposit_cents=totals.deposit_cents,
            balance_cents=totals.balance_cents,
            items=priced,
            warnings=warnings,
        )

    async def compute_project_pricing(self, context: RequestContext, project_id: UUID) -> ProjectPricingResponse:
        """Price every service line of a project without persisting anything."""
        project = await self.load_project(context.business_id, project_id)
        return await self.price_project(project)
