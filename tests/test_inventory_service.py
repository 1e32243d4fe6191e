import pytest

from domain.errors import NotFoundError
from domain.models import Customer, InventoryItem
from services.bill_service import build_bill
from services.inventory_service import (
    build_line_items,
    clear_selection,
    quantity_key,
    search_inventory,
    selection_count,
    selection_total,
    set_quantity,
)


def test_build_line_items_follows_selection_order(catalog):
    lines = build_line_items(catalog, {"3": 1, "1": 2})

    assert [(l.item_name, l.quantity, l.unit_price, l.line_total) for l in lines] == [
        ("Service X", 1, 500.0, 500.0),
        ("Product A", 2, 100.0, 200.0),
    ]


def test_build_line_items_skips_zero_quantities(catalog):
    lines = build_line_items(catalog, {"1": 0, "2": 3})
    assert [l.item_name for l in lines] == ["Product B"]


def test_build_line_items_unknown_id(catalog):
    with pytest.raises(NotFoundError, match="reload"):
        build_line_items(catalog, {"99": 1})


def test_set_quantity_returns_new_selection():
    before = {"1": 2}

    updated = set_quantity(before, "2", 5)
    removed = set_quantity(updated, "1", 0)

    assert before == {"1": 2}
    assert updated == {"1": 2, "2": 5}
    assert removed == {"2": 5}


def test_selection_summary(catalog):
    selection = {"1": 2, "2": 1, "gone": 4}

    assert selection_count(selection) == 7
    assert selection_total(catalog, selection) == 400.0


@pytest.mark.parametrize("term, expected", [("", 3), ("product", 2), ("SERVICE", 1), ("zzz", 0)])
def test_search_inventory(catalog, term, expected):
    assert len(search_inventory(catalog, term)) == expected


def test_selection_to_bill(catalog, clock):
    lines = build_line_items(catalog, {"1": 2, "3": 1})

    bill = build_bill(Customer(name="Alice"), lines, 18, clock)

    assert bill.subtotal == 700
    assert bill.tax_amount == pytest.approx(126)
    assert bill.total == pytest.approx(826)
    assert sum(i.line_total for i in bill.items) == bill.subtotal


def test_build_line_items_is_repeatable(catalog):
    selection = {"2": 1, "1": 3}
    assert build_line_items(catalog, selection) == build_line_items(catalog, selection)


def test_widget_scenario(clock):
    lines = build_line_items([InventoryItem(id="1", name="Widget", unit_price=100)], {"1": 2})

    assert [l.to_dict() for l in lines] == [{"itemName": "Widget", "quantity": 2, "price": 100, "total": 200}]

    bill = build_bill(Customer(name="Alice"), lines, 10, clock)

    assert (bill.subtotal, bill.tax_amount, bill.total) == (200, 20, 220)


def test_clear_selection_drops_quantity_widgets():
    state = {
        "selection": {"1": 2, "3": 1},
        quantity_key("1"): 2,
        quantity_key("3"): 1,
        "last_bill": None,
    }

    clear_selection(state)

    assert state == {"selection": {}, "last_bill": None}
    assert quantity_key("1") == "qty_1"
