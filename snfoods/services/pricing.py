# snfoods/services/pricing.py
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol

# Fixed GST rate applied when an order is created
TAX_RATE = Decimal("0.10")

CENT = Decimal("0.01")


class PricedLine(Protocol):
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def round_money(value: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return round_money(Decimal(unit_price) * quantity)


def compute_totals(lines: Iterable[PricedLine]) -> OrderTotals:
    """
    Order amounts for a cart.

    Line totals are summed at full precision; subtotal, tax and total are
    then each rounded to cents, so per-line rounding never drifts the
    subtotal.
    """
    raw = sum(
        (Decimal(line.unit_price) * line.quantity for line in lines),
        Decimal("0"),
    )
    subtotal = round_money(raw)
    tax_amount = round_money(subtotal * TAX_RATE)
    total_amount = round_money(subtotal + tax_amount)
    return OrderTotals(subtotal, tax_amount, total_amount)


def format_money(value: Decimal | float | None) -> str:
    """'$1,234.50' style display used in emails."""
    if value is None:
        return "-"
    return f"${round_money(Decimal(str(value))):,.2f}"
