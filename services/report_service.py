# billing/services/report_service.py

from typing import Iterable, List

import pandas as pd

from domain.models import Bill, SalesSummary

REPORT_COLUMNS = ["Bill Number", "Date", "Customer", "Items", "Subtotal", "Tax", "Total"]


def summarize_sales(bills: Iterable[Bill]) -> SalesSummary:
    bills = list(bills)
    return SalesSummary(
        bill_count=len(bills),
        total_sales=sum(bill.total for bill in bills),
    )


def most_recent_first(bills: Iterable[Bill]) -> List[Bill]:
    """Bills are stored in creation order, so the newest are at the end."""
    return list(reversed(list(bills)))


def bills_to_frame(bills: Iterable[Bill]) -> pd.DataFrame:
    """One row per bill, raw numbers (format for display separately)."""
    rows = [
        {
            "Bill Number": bill.bill_number,
            "Date": bill.issue_date,
            "Customer": bill.customer_name,
            "Items": len(bill.items),
            "Subtotal": bill.subtotal,
            "Tax": bill.tax_amount,
            "Total": bill.total,
        }
        for bill in bills
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def line_items_frame(bill: Bill) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Qty": item.quantity, "Item": item.item_name, "Price": item.unit_price, "Total": item.line_total}
            for item in bill.items
        ],
        columns=["Qty", "Item", "Price", "Total"],
    )
