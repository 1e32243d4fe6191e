# billing/services/bill_service.py

import logging
from datetime import datetime
from typing import Callable, List, Sequence

from domain.errors import ValidationError
from domain.models import Bill, Customer, LineItem
from services.calculator import compute_bill_totals, compute_line_total

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

BILL_NUMBER_PREFIX = "BILL-"


def system_clock() -> datetime:
    return datetime.now()


def generate_bill_number(clock: Clock = system_clock) -> str:
    """
    Time-derived bill number, e.g. "BILL-1710064800000" (epoch milliseconds).
    Only the store can detect a collision; see BillingStore.create_bill.
    """
    millis = int(clock().timestamp() * 1000)
    return f"{BILL_NUMBER_PREFIX}{millis}"


def validate_line_items(items: Sequence[LineItem]) -> List[LineItem]:
    """Checked copies of `items` with line totals recomputed. Raises ValidationError."""
    if not items:
        raise ValidationError("Please add at least one item")

    checked: List[LineItem] = []
    for idx, item in enumerate(items, start=1):
        if not str(item.item_name or "").strip():
            raise ValidationError(f"Item {idx} has no name")
        if item.unit_price is None:
            raise ValidationError(f"Item {idx} ('{item.item_name}') has no price")
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError(f"Item {idx} ('{item.item_name}') must have a quantity above 0")
        if item.unit_price < 0:
            raise ValidationError(f"Item {idx} ('{item.item_name}') has a negative price")

        # lineTotal is derived, never trusted from input
        checked.append(
            LineItem(
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=compute_line_total(item.quantity, item.unit_price),
            )
        )
    return checked


def build_bill(
        customer: Customer,
        items: Sequence[LineItem],
        tax_rate_percent: float,
        clock: Clock = system_clock,
) -> Bill:
    """
    Assemble a Bill from the customer form and the selected line items.

    Raises ValidationError when the customer name is blank, when there are
    no items, or when an item has no name or price. Nothing is persisted.
    """
    if not customer.name or not customer.name.strip():
        raise ValidationError("Please enter customer name")

    lines = validate_line_items(items)
    totals = compute_bill_totals(lines, tax_rate_percent)

    now = clock()
    bill = Bill(
        bill_number=generate_bill_number(lambda: now),
        issue_date=now.date().isoformat(),
        customer_name=customer.name.strip(),
        customer_address=(customer.address or "").strip(),
        customer_phone=(customer.phone or "").strip(),
        items=tuple(lines),
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
    )

    logger.debug("Built bill %s with %d item(s)", bill.bill_number, len(lines))
    return bill
