from decimal import Decimal

import pytest

from armoire.domain.pricing import compute_totals, to_minor_units


@pytest.mark.parametrize(
    "subtotal, shipping, tax, total",
    [
        ("800", "99.00", "144.00", "1043.00"),
        ("1200", "0.00", "216.00", "1416.00"),
    ],
)
def test_documented_examples(subtotal, shipping, tax, total):
    totals = compute_totals([(Decimal(subtotal), 1)])

    assert totals.subtotal == Decimal(subtotal)
    assert totals.shipping_cost == Decimal(shipping)
    assert totals.tax_amount == Decimal(tax)
    assert totals.total == Decimal(total)


def test_shipping_is_free_from_the_threshold_upwards():
    assert compute_totals([(Decimal("998.99"), 1)]).shipping_cost == Decimal("99.00")
    assert compute_totals([(Decimal("999"), 1)]).shipping_cost == Decimal("0.00")


def test_total_is_sum_of_lines_plus_shipping_plus_tax():
    lines = [(Decimal("249.50"), 2), (Decimal("120.00"), 1), (Decimal("35.25"), 4)]

    totals = compute_totals(lines)

    item_sum = sum(price * qty for price, qty in lines)
    assert totals.subtotal == item_sum
    assert totals.total == item_sum + totals.shipping_cost + totals.tax_amount
    assert totals.tax_amount == (item_sum * Decimal("0.18")).quantize(Decimal("0.01"))


def test_tax_rate_comes_from_configuration(monkeypatch):
    from armoire.utils import settings

    monkeypatch.setattr(settings, "TAX_RATE", Decimal("0.10"))
    assert compute_totals([(Decimal("800"), 1)]).tax_amount == Decimal("80.00")

    monkeypatch.setattr(settings, "TAX_RATE", Decimal("0.18"))
    assert compute_totals([(Decimal("800"), 1)]).tax_amount == Decimal("144.00")


def test_empty_lines_give_zero_subtotal_and_flat_shipping():
    totals = compute_totals([])

    assert totals.subtotal == Decimal("0.00")
    assert totals.shipping_cost == Decimal("99.00")
    assert totals.total == Decimal("99.00")


def test_minor_units_are_rounded_paise():
    assert to_minor_units(Decimal("1043.00")) == 104300
    assert to_minor_units(Decimal("10.005")) == 1001
