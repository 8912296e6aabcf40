"""
Money and pricing helpers.

All amounts are integer cents. Percentages round half up, on non-negative
integers only:

    round_percent(amount, percent) == (amount * percent + 50) // 100
"""

from dataclasses import dataclass
from typing import Optional
import enum

from billing_engine.models.common import DiscountType


class PriceSource(str, enum.Enum):
    """Where a line's unit price came from."""
    OVERRIDE = "override"
    DEFAULT = "default"
    TJM = "tjm"
    MISSING = "missing"


@dataclass(frozen=True)
class PriceResolution:
    unit_price_cents: int
    source: PriceSource
    missing_price: bool


@dataclass(frozen=True)
class DiscountedUnit:
    unit_price_cents: int  # effective, after discount
    original_unit_price_cents: Optional[int]  # set only when a discount applies
    discount_type: DiscountType
    discount_value: Optional[int]


def round_percent(amount: int, percent: int) -> int:
    """Return percent% of a non-negative amount, rounded half up."""
    if amount < 0 or percent < 0:
        raise ValueError("round_percent expects non-negative operands")
    return (amount * percent + 50) // 100


def resolve_unit_price(
    override_cents: Optional[int] = None,
    default_cents: Optional[int] = None,
    daily_rate_cents: Optional[int] = None,
) -> PriceResolution:
    """
    Pick a unit price from the ranked sources: explicit override, catalog
    default, then daily rate. With none available the price is 0 and the
    line is flagged as missing a price.
    """
    if override_cents is not None:
        return PriceResolution(int(override_cents), PriceSource.OVERRIDE, False)
    if default_cents is not None:
        return PriceResolution(int(default_cents), PriceSource.DEFAULT, False)
    if daily_rate_cents is not None:
        return PriceResolution(int(daily_rate_cents), PriceSource.TJM, False)
    return PriceResolution(0, PriceSource.MISSING, True)


def apply_discount(
    unit_price_cents: int,
    discount_type: DiscountType = DiscountType.NONE,
    discount_value: Optional[int] = None,
) -> DiscountedUnit:
    """
    Apply a per-unit discount.

    PERCENT removes round_percent(unit, value) from the unit price, AMOUNT
    removes a fixed number of cents, floored at 0. A discount with no value
    behaves like NONE.
    """
    if discount_type == DiscountType.PERCENT and discount_value is not None:
        if not 0 <= discount_value <= 100:
            raise ValueError("percent discount must be between 0 and 100")
        final = unit_price_cents - round_percent(unit_price_cents, discount_value)
        return DiscountedUnit(final, unit_price_cents, DiscountType.PERCENT, discount_value)

    if discount_type == DiscountType.AMOUNT and discount_value is not None:
        if discount_value < 0:
            raise ValueError("amount discount must be non-negative")
        final = max(0, unit_price_cents - discount_value)
        return DiscountedUnit(final, unit_price_cents, DiscountType.AMOUNT, discount_value)

    return DiscountedUnit(unit_price_cents, None, DiscountType.NONE, None)


def line_total(quantity: int, unit_price_cents: int) -> int:
    """Total of a line whose unit price is already discounted."""
    if quantity < 1:
        raise ValueError("quantity must be a positive integer")
    return quantity * unit_price_cents
