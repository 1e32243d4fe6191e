from datetime import date

import pytest

import billing_api
from config import Settings
from conftest import FakeDrive, fixed_clock, make_bill, millis
from domain.errors import DuplicateError
from domain.models import Customer, InventoryItem, LineItem
from services.drive_service import view_url
from storage.memory_store import MemoryStore


@pytest.fixture
def store(catalog):
    return MemoryStore(inventory=catalog, clock=fixed_clock)


class AlwaysTaken(MemoryStore):
    def __init__(self):
        super().__init__()
        self.attempts = []

    def create_bill(self, bill):
        self.attempts.append(bill.bill_number)
        raise DuplicateError("Bill with this number already exists. Please try again.")


class Broken(MemoryStore):
    def list_bills(self):
        raise RuntimeError("disk on fire")


ITEMS = [LineItem.create("Product A", 2, 100)]


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def test_login():
    settings = Settings(app_password="s3cret")

    assert billing_api.login("s3cret", settings) == {"success": True, "message": "Login successful"}
    assert billing_api.login("nope", settings)["kind"] == "Unauthorized"
    assert billing_api.login("", settings)["success"] is False


def test_login_without_configured_password():
    result = billing_api.login("anything", Settings())

    assert result["success"] is False
    assert result["kind"] == "UpstreamError"


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------

def test_submit_bill(store):
    result = billing_api.submit_bill(store, Customer(name="Alice"), ITEMS, 10, clock=fixed_clock)

    assert result["success"] is True
    assert result["bill"]["billNumber"] == f"BILL-{millis()}"
    assert result["bill"]["total"] == pytest.approx(220)
    assert len(store.list_bills()) == 1


def test_submit_bill_validation_failure_persists_nothing(store):
    result = billing_api.submit_bill(store, Customer(name=" "), ITEMS, 0, clock=fixed_clock)

    assert result == {"success": False, "error": "Please enter customer name", "kind": "ValidationError"}
    assert store.list_bills() == []


def test_submit_bill_retries_on_collision(store):
    store.create_bill(make_bill(f"BILL-{millis()}"))

    result = billing_api.submit_bill(store, Customer(name="Alice"), ITEMS, 0, clock=fixed_clock)

    assert result["success"] is True
    assert result["bill"]["billNumber"] == f"BILL-{millis() + 1}"
    assert len(store.list_bills()) == 2


def test_submit_bill_gives_up_after_attempts():
    store = AlwaysTaken()

    result = billing_api.submit_bill(store, Customer(name="Alice"), ITEMS, 0, clock=fixed_clock)

    assert result["kind"] == "DuplicateError"
    assert len(store.attempts) == billing_api.BILL_NUMBER_ATTEMPTS
    assert len(set(store.attempts)) == billing_api.BILL_NUMBER_ATTEMPTS


def test_create_bill_from_payload(store):
    payload = make_bill("BILL-9", total=100.0).to_dict()

    result = billing_api.create_bill(store, payload)

    assert result["success"] is True
    assert store.get_bill("BILL-9").customer_name == "Alice"


def test_create_bill_rejects_inconsistent_totals(store):
    payload = make_bill("BILL-9").to_dict()
    payload["total"] = 1.0

    result = billing_api.create_bill(store, payload)

    assert result["kind"] == "ValidationError"
    assert store.list_bills() == []


def _widget_payload(**item):
    line = {"itemName": "Widget", "quantity": 2, "price": 100, "total": 200, **item}
    line = {k: v for k, v in line.items() if v is not None}
    total = line.get("total", 200)
    return {
        "billNumber": "BILL-9",
        "date": "2024-03-10",
        "customerName": "Alice",
        "items": [line],
        "subtotal": total,
        "tax": 0,
        "total": total,
    }


@pytest.mark.parametrize(
    "item, message",
    [
        ({"total": 5}, "total does not equal quantity * price"),
        ({"price": None}, "has no price"),
        ({"price": ""}, "has no price"),
        ({"price": "abc"}, "Price must be a number"),
        ({"price": "nan"}, "invalid price"),
        ({"quantity": 0, "total": 0}, "quantity above 0"),
        ({"itemName": "  "}, "has no name"),
        ({"price": -100, "total": -200}, "negative price"),
    ],
)
def test_create_bill_rejects_bad_line_items(store, item, message):
    result = billing_api.create_bill(store, _widget_payload(**item))

    assert result["kind"] == "ValidationError"
    assert message in result["error"]
    assert store.list_bills() == []


def test_create_bill_rejects_negative_tax(store):
    payload = _widget_payload()
    payload.update(tax=-50, total=150)

    result = billing_api.create_bill(store, payload)

    assert result["error"] == "Tax cannot be negative"
    assert store.list_bills() == []


def test_create_bill_accepts_consistent_payload(store):
    assert billing_api.create_bill(store, _widget_payload())["success"] is True
    assert store.get_bill("BILL-9").items[0].line_total == 200


def test_create_bill_duplicate(store):
    store.create_bill(make_bill("BILL-9"))

    result = billing_api.create_bill(store, make_bill("BILL-9").to_dict())

    assert result == {
        "success": False,
        "error": "Bill with this number already exists. Please try again.",
        "kind": "DuplicateError",
    }


def test_get_bill(store):
    store.create_bill(make_bill("BILL-1"))

    assert billing_api.get_bill(store, "BILL-1")["bill"]["billNumber"] == "BILL-1"
    assert billing_api.get_bill(store, "BILL-2")["kind"] == "NotFoundError"
    assert billing_api.get_bill(store, "")["kind"] == "ValidationError"


def test_sales_report(store):
    for number, issued, total in [
        ("BILL-1", "2024-03-01", 10.0),
        ("BILL-2", "2024-03-10", 20.0),
        ("BILL-3", "2024-02-28", 40.0),
        ("BILL-4", "2024-03-31", 5.5),
    ]:
        store.create_bill(make_bill(number, issued, total))

    report = billing_api.sales_report(store, "month", date(2024, 3, 15))

    assert report["label"] == "March 2024"
    assert [b["billNumber"] for b in report["bills"]] == ["BILL-4", "BILL-2", "BILL-1"]
    assert report["billCount"] == 3
    assert report["totalSales"] == pytest.approx(35.5)


def test_sales_report_unknown_period(store):
    assert billing_api.sales_report(store, "decade", date(2024, 3, 15))["kind"] == "ValidationError"


def test_unexpected_errors_are_reported_as_upstream():
    result = billing_api.list_bills(Broken())

    assert result == {"success": False, "error": "disk on fire", "kind": "UpstreamError"}


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

def test_add_inventory_item(store):
    result = billing_api.add_inventory_item(store, {"name": " Lamp ", "price": "12.5"})

    assert result["success"] is True
    assert result["item"]["name"] == "Lamp"
    assert result["item"]["price"] == 12.5
    assert result["item"]["id"] == str(millis())


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"name": "Lamp"}, "Name and price are required"),
        ({"price": 3}, "Name and price are required"),
        ({"name": "Lamp", "price": "cheap"}, "Price must be a number"),
        ({"name": "Lamp", "price": -1}, "Price cannot be negative"),
    ],
)
def test_add_inventory_item_validation(store, payload, message):
    result = billing_api.add_inventory_item(store, payload)

    assert result["kind"] == "ValidationError"
    assert message in result["error"]


def test_update_inventory_item(store):
    result = billing_api.update_inventory_item(store, {"id": "2", "price": "250"})

    assert result["item"] == {
        "id": "2",
        "name": "Product B",
        "price": 250.0,
        "description": "",
        "imageUrl": "",
    }


@pytest.mark.parametrize(
    "payload, kind",
    [
        ({"price": 1}, "ValidationError"),
        ({"id": "1", "name": "  "}, "ValidationError"),
        ({"id": "1", "price": -3}, "ValidationError"),
        ({"id": "404", "name": "x"}, "NotFoundError"),
    ],
)
def test_update_inventory_item_failures(store, payload, kind):
    assert billing_api.update_inventory_item(store, payload)["kind"] == kind


def test_delete_inventory_item(store):
    assert billing_api.delete_inventory_item(store, "1") == {"success": True}
    assert billing_api.delete_inventory_item(store, "1") == {"success": True}
    assert [i.id for i in store.list_inventory()] == ["2", "3"]
    assert billing_api.delete_inventory_item(store, "")["kind"] == "ValidationError"


def test_delete_inventory_item_removes_drive_image():
    drive = FakeDrive()
    store = MemoryStore(inventory=[InventoryItem(id="1", name="Chair", unit_price=1.0, image_ref=view_url("img42"))])

    billing_api.delete_inventory_item(store, "1", drive)

    assert drive.deleted == ["img42"]
    assert store.list_inventory() == []


def test_upload_image():
    drive = FakeDrive()
    settings = Settings(drive_folder_name="Pictures", drive_public_access=True)

    result = billing_api.upload_image(drive, "data:image/png;base64,cG5n", "a.png", settings)

    assert result["success"] is True
    assert "drive.google.com" in result["imageUrl"]
    assert len(drive.shared) == 1


def test_upload_image_missing_data():
    result = billing_api.upload_image(FakeDrive(), None, "a.png", Settings())
    assert result["kind"] == "ValidationError"


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

def test_sync_sheets(store):
    store.create_bill(make_bill("BILL-1"))
    target = MemoryStore(inventory=[InventoryItem(id="old", name="Old", unit_price=1.0)])

    result = billing_api.sync_sheets(store, target, "all")

    assert result["results"] == {
        "bills": {"success": True, "count": 1},
        "inventory": {"success": True, "count": 3},
    }
    assert "syncedAt" in result
    assert [i.id for i in target.list_inventory()] == ["1", "2", "3"]


def test_sync_sheets_invalid_kind(store):
    result = billing_api.sync_sheets(store, MemoryStore(), "everything")

    assert result["error"] == 'Invalid type. Must be "bills", "inventory", or "all"'
