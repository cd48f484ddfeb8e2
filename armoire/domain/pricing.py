# armoire/domain/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from armoire.utils import settings

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total: Decimal


def to_minor_units(amount) -> int:
    # paise dla bramki
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def compute_totals(
    lines: Iterable[tuple[Decimal, int]],
    tax_rate: Decimal | None = None,
    free_shipping_threshold: Decimal | None = None,
    shipping_flat_fee: Decimal | None = None,
) -> OrderTotals:
    """
    lines: (unit_price, quantity).
    shipping = flat fee ponizej progu, 0 od progu wzwyz; tax = subtotal * rate.
    """
    tax_rate = settings.TAX_RATE if tax_rate is None else tax_rate
    threshold = settings.FREE_SHIPPING_THRESHOLD if free_shipping_threshold is None else free_shipping_threshold
    flat_fee = settings.SHIPPING_FLAT_FEE if shipping_flat_fee is None else shipping_flat_fee

    subtotal = to_money(sum((Decimal(price) * qty for price, qty in lines), Decimal("0.00")))
    shipping = to_money(flat_fee) if subtotal < threshold else to_money(0)
    tax = to_money(subtotal * tax_rate)

    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax_amount=tax,
        total=subtotal + shipping + tax,
    )
