# billing/services/calculator.py

from typing import Iterable

from domain.models import BillTotals, LineItem


def compute_line_total(quantity: float, unit_price: float) -> float:
    """
    quantity * unit_price, unrounded. Negative inputs give negative totals;
    validation happens when the bill is built.
    """
    return quantity * unit_price


def compute_bill_totals(items: Iterable[LineItem], tax_rate_percent: float) -> BillTotals:
    subtotal = 0.0
    for item in items:  # input order, so float sums are reproducible
        subtotal += item.line_total

    tax_amount = subtotal * tax_rate_percent / 100
    return BillTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )
