from conftest import make_bill
from domain.models import LineItem
from services.report_service import (
    REPORT_COLUMNS,
    bills_to_frame,
    line_items_frame,
    most_recent_first,
    summarize_sales,
)


def test_summarize_sales():
    summary = summarize_sales([make_bill("BILL-1", total=10.0), make_bill("BILL-2", total=32.5)])

    assert summary.bill_count == 2
    assert summary.total_sales == 42.5


def test_summarize_nothing():
    summary = summarize_sales([])
    assert (summary.bill_count, summary.total_sales) == (0, 0)


def test_most_recent_first():
    bills = [make_bill("BILL-1"), make_bill("BILL-2"), make_bill("BILL-3")]

    assert [b.bill_number for b in most_recent_first(bills)] == ["BILL-3", "BILL-2", "BILL-1"]
    assert [b.bill_number for b in bills] == ["BILL-1", "BILL-2", "BILL-3"]


def test_bills_to_frame():
    items = (LineItem.create("A", 1, 10), LineItem.create("B", 2, 5))
    df = bills_to_frame([make_bill("BILL-1", "2024-03-10", total=22.0, items=items)])

    assert list(df.columns) == REPORT_COLUMNS
    row = df.iloc[0]
    assert row["Bill Number"] == "BILL-1"
    assert row["Items"] == 2
    assert row["Subtotal"] == 20.0
    assert row["Tax"] == 2.0


def test_empty_frame_keeps_columns():
    assert list(bills_to_frame([]).columns) == REPORT_COLUMNS


def test_line_items_frame():
    bill = make_bill(items=(LineItem.create("Widget", 3, 2.5),), total=7.5)

    df = line_items_frame(bill)

    assert df.to_dict("records") == [{"Qty": 3, "Item": "Widget", "Price": 2.5, "Total": 7.5}]
