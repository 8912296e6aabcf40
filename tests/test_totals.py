"""
Document totals aggregation tests.
"""

import pytest

from billing_engine.models.common import DiscountType
from billing_engine.utils.pricing import apply_discount, line_total
from billing_engine.utils.totals import compute_totals


def test_single_discounted_line_with_deposit():
    """One line, qty 2 at 100.00 with 10% off, 30% deposit."""
    unit = apply_discount(10000, DiscountType.PERCENT, 10).unit_price_cents
    totals = compute_totals([line_total(2, unit)], 30)

    assert totals.total_cents == 18000
    assert totals.deposit_cents == 5400
    assert totals.balance_cents == 12600


def test_empty_document_totals_zero():
    totals = compute_totals([], 30)
    assert (totals.total_cents, totals.deposit_cents, totals.balance_cents) == (0, 0, 0)


@pytest.mark.parametrize(
    "line_totals,percent,deposit",
    [
        ([100, 50], 33, 50),     # 49.5 -> 50
        ([1001], 33, 330),
        ([101], 50, 51),
        ([1], 50, 1),
        ([12345], 0, 0),
        ([12345], 100, 12345),
    ],
)
def test_deposit_boundaries(line_totals, percent, deposit):
    totals = compute_totals(line_totals, percent)
    assert totals.total_cents == sum(line_totals)
    assert totals.deposit_cents == deposit
    assert totals.balance_cents == sum(line_totals) - deposit


def test_deposit_plus_balance_always_equals_total():
    for total in range(0, 400, 7):
        for percent in (0, 1, 15, 30, 33, 50, 66, 99, 100):
            totals = compute_totals([total], percent)
            assert totals.deposit_cents + totals.balance_cents == totals.total_cents
            assert 0 <= totals.deposit_cents <= totals.total_cents


@pytest.mark.parametrize("percent", [-1, 101])
def test_deposit_percent_out_of_range(percent):
    with pytest.raises(ValueError):
        compute_totals([100], percent)
