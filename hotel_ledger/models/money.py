"""Integer minor-unit (cents) helpers.

All price arithmetic runs on ints; Decimal only appears at the model
boundary and strings only for display.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Amount = Union[Decimal, int, float, str]

CENTS = Decimal("0.01")


def to_cents(amount: Amount) -> int:
    """Convert a currency amount to integer cents, rounding half-up."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-decimal Decimal."""
    return (Decimal(cents) / 100).quantize(CENTS)


def divide_cents(cents: int, numerator: int, denominator: int) -> int:
    """Return ``cents * numerator / denominator`` rounded half-up."""
    if denominator == 0:
        return 0
    value = Decimal(cents) * Decimal(numerator) / Decimal(denominator)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(cents: int, percent: Amount) -> int:
    """Return ``percent`` % of ``cents`` rounded half-up."""
    value = Decimal(cents) * Decimal(str(percent)) / 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(cents: int) -> str:
    """Format cents for display, e.g. 30000 -> '300.00'."""
    return f"{from_cents(cents):.2f}"


def spread_cents(cents: int, period: int, count: int) -> list[int]:
    """Split a rate quoted for ``period`` units across ``count`` consecutive units.

    Unit ``i`` takes the rounded cumulative share up to ``i + 1`` minus the
    share up to ``i``, so the first ``k`` units always sum to
    ``divide_cents(cents, k, period)`` and any whole period sums to ``cents``.
    """
    shares = [divide_cents(cents, i, period) for i in range(count + 1)]
    return [shares[i + 1] - shares[i] for i in range(count)]
