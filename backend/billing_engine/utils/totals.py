"""
Document totals aggregation.
"""

from dataclasses import dataclass
from typing import Iterable

from billing_engine.utils.pricing import round_percent


@dataclass(frozen=True)
class DocumentTotals:
    total_cents: int
    deposit_cents: int
    balance_cents: int


def compute_totals(line_totals: Iterable[int], deposit_percent: int) -> DocumentTotals:
    """
    Sum line totals and split them into deposit and balance.

    The deposit rounds half up; the balance takes the remainder so that
    deposit + balance == total always holds.
    """
    if not 0 <= deposit_percent <= 100:
        raise ValueError("deposit_percent must be between 0 and 100")
    total = sum(int(value) for value in line_totals)
    deposit = round_percent(total, deposit_percent)
    return DocumentTotals(total_cents=total, deposit_cents=deposit, balance_cents=total - deposit)
