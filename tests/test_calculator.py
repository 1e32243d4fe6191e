import pytest

from domain.models import LineItem
from services.calculator import compute_bill_totals, compute_line_total


def test_line_total_is_quantity_times_price():
    assert compute_line_total(3, 2.5) == 7.5
    assert compute_line_total(3, 0.1) == 3 * 0.1  # no rounding


def test_bill_totals_with_tax():
    items = [LineItem.create("A", 2, 100), LineItem.create("B", 1, 50)]

    totals = compute_bill_totals(items, 10)

    assert totals.subtotal == 250
    assert totals.tax_amount == pytest.approx(25)
    assert totals.total == pytest.approx(275)


def test_bill_totals_without_tax():
    totals = compute_bill_totals([LineItem.create("A", 4, 25)], 0)

    assert totals.subtotal == 100
    assert totals.tax_amount == 0
    assert totals.total == totals.subtotal


def test_bill_totals_of_nothing_are_zero():
    totals = compute_bill_totals([], 18)
    assert (totals.subtotal, totals.tax_amount, totals.total) == (0, 0, 0)


def test_line_item_helpers_keep_total_in_sync():
    item = LineItem.create("Widget", 2, 10)

    assert item.with_quantity(5).line_total == 50
    assert item.with_unit_price(3).line_total == 6
    assert item.line_total == 20
