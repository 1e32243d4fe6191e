"""
Request handlers for the dashboard. Every function returns a JSON-ready
envelope:

    {"success": True, ...payload}
    {"success": False, "error": "<message>", "kind": "<ErrorName>"}
"""

import logging
import math
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from googleapiclient.discovery import Resource

from config import Settings
from domain.errors import BillingError, DuplicateError, UpstreamError, ValidationError
from domain.models import Bill, Customer, LineItem, NewInventoryItem
from services import drive_service
from services.auth_service import verify_password
from services.bill_service import BILL_NUMBER_PREFIX, Clock, build_bill, system_clock, validate_line_items
from services.period_filter import filter_by_period
from services.report_service import most_recent_first, summarize_sales
from storage.base import BillingStore
from utils.data_migrator import sync_store

logger = logging.getLogger(__name__)

# how many fresh bill numbers submit_bill tries before giving up
BILL_NUMBER_ATTEMPTS = 3

TOTALS_TOLERANCE = 1e-6


def _ok(**payload) -> Dict[str, Any]:
    return {"success": True, **payload}


def _fail(error: BillingError) -> Dict[str, Any]:
    return {"success": False, "error": error.message, "kind": error.kind}


def _unexpected(what: str, e: Exception) -> Dict[str, Any]:
    logger.exception("Unexpected error while trying to %s", what)
    return {"success": False, "error": str(e) or f"Failed to {what}", "kind": UpstreamError.kind}


def _log_failure(what: str, e: BillingError) -> None:
    if isinstance(e, UpstreamError):
        logger.error("Failed to %s: %s", what, e.message)
    else:
        logger.warning("Rejected request to %s: %s", what, e.message)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def login(password: Optional[str], settings: Settings) -> Dict[str, Any]:
    try:
        if not verify_password(password, settings):
            return {"success": False, "error": "Invalid password", "kind": "Unauthorized"}
        return _ok(message="Login successful")
    except BillingError as e:
        _log_failure("log in", e)
        return _fail(e)


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------

def _check_raw_items(raw_items: Any) -> None:
    # Bill.from_dict reads a missing or unreadable price as 0.0
    for idx, raw in enumerate(raw_items or [], start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Item {idx} is not an object")
        if raw.get("price") in (None, ""):
            raise ValidationError(f"Item {idx} has no price")
        if not math.isfinite(_parse_price(raw["price"])):
            raise ValidationError(f"Item {idx} has an invalid price")


def _check_bill_payload(bill: Bill) -> None:
    if not bill.bill_number:
        raise ValidationError("Bill number is required")
    if not bill.customer_name.strip():
        raise ValidationError("Please enter customer name")

    checked = validate_line_items(bill.items)
    for idx, (given, expected) in enumerate(zip(bill.items, checked), start=1):
        if abs(given.line_total - expected.line_total) > TOTALS_TOLERANCE:
            raise ValidationError(f"Item {idx} ('{given.item_name}') total does not equal quantity * price")

    subtotal = sum(item.line_total for item in checked)
    if abs(subtotal - bill.subtotal) > TOTALS_TOLERANCE:
        raise ValidationError("Bill subtotal does not match its items")
    if bill.tax_amount < 0:
        raise ValidationError("Tax cannot be negative")
    if abs(bill.subtotal + bill.tax_amount - bill.total) > TOTALS_TOLERANCE:
        raise ValidationError("Bill total does not equal subtotal plus tax")


def create_bill(store: BillingStore, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Persist a bill sent by a client in the wire format."""
    try:
        _check_raw_items(payload.get("items"))
        bill = Bill.from_dict(dict(payload))
        _check_bill_payload(bill)
        store.create_bill(bill)
        return _ok(bill=bill.to_dict())
    except BillingError as e:
        _log_failure("create bill", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("create bill", e)


def _next_bill_number(previous: str, clock: Clock) -> str:
    suffix = previous[len(BILL_NUMBER_PREFIX):]
    last = int(suffix) if suffix.isdigit() else 0
    millis = max(int(clock().timestamp() * 1000), last + 1)
    return f"{BILL_NUMBER_PREFIX}{millis}"


def submit_bill(
        store: BillingStore,
        customer: Customer,
        items: Sequence[LineItem],
        tax_rate_percent: float,
        clock: Clock = system_clock,
        attempts: int = BILL_NUMBER_ATTEMPTS,
) -> Dict[str, Any]:
    """
    Build a bill and save it. On a bill-number collision a fresh number is
    generated and the save retried, up to `attempts` times in total.
    """
    try:
        bill = build_bill(customer, items, tax_rate_percent, clock)

        attempts = max(1, attempts)
        for attempt in range(1, attempts + 1):
            try:
                store.create_bill(bill)
                logger.info("Created bill %s (total %.2f)", bill.bill_number, bill.total)
                return _ok(bill=bill.to_dict())
            except DuplicateError:
                if attempt == attempts:
                    raise
                logger.warning(
                    "Bill number %s already taken (%d/%d), regenerating",
                    bill.bill_number,
                    attempt,
                    attempts,
                )
                bill = replace(bill, bill_number=_next_bill_number(bill.bill_number, clock))
    except BillingError as e:
        _log_failure("create bill", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("create bill", e)


def list_bills(store: BillingStore) -> Dict[str, Any]:
    try:
        return _ok(bills=[b.to_dict() for b in store.list_bills()])
    except BillingError as e:
        _log_failure("fetch bills", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("fetch bills", e)


def get_bill(store: BillingStore, bill_number: str) -> Dict[str, Any]:
    try:
        if not bill_number:
            raise ValidationError("Bill number is required")
        return _ok(bill=store.get_bill(bill_number).to_dict())
    except BillingError as e:
        _log_failure("fetch bill", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("fetch bill", e)


def sales_report(
        store: BillingStore,
        period: str,
        reference_date: date,
        strict: bool = False,
) -> Dict[str, Any]:
    """Bills for the period (newest first) with count and total sales."""
    try:
        result = filter_by_period(store.list_bills(), period, reference_date, strict=strict)
        summary = summarize_sales(result.filtered)
        return _ok(
            label=result.label,
            bills=[b.to_dict() for b in most_recent_first(result.filtered)],
            billCount=summary.bill_count,
            totalSales=summary.total_sales,
        )
    except BillingError as e:
        _log_failure("build sales report", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("build sales report", e)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

def list_inventory(store: BillingStore) -> Dict[str, Any]:
    try:
        return _ok(items=[i.to_dict() for i in store.list_inventory()])
    except BillingError as e:
        _log_failure("fetch inventory", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("fetch inventory", e)


def _parse_price(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Price must be a number, got '{value}'") from e


def add_inventory_item(store: BillingStore, payload: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        name = str(payload.get("name") or "").strip()
        price = payload.get("price")
        if not name or price in (None, ""):
            raise ValidationError("Name and price are required")

        unit_price = _parse_price(price)
        if unit_price < 0:
            raise ValidationError("Price cannot be negative")

        item = store.create_inventory_item(
            NewInventoryItem(
                name=name,
                unit_price=unit_price,
                description=str(payload.get("description") or ""),
                image_ref=str(payload.get("imageUrl") or ""),
            )
        )
        logger.info('Added inventory item "%s" (id=%s)', item.name, item.id)
        return _ok(item=item.to_dict())
    except BillingError as e:
        _log_failure("add inventory item", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("add inventory item", e)


def update_inventory_item(store: BillingStore, payload: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        fields = dict(payload)
        item_id = str(fields.pop("id", "") or "")
        if not item_id:
            raise ValidationError("Item ID is required")

        if "name" in fields and not str(fields["name"] or "").strip():
            raise ValidationError("Name cannot be empty")
        if "price" in fields:
            fields["price"] = _parse_price(fields["price"])
            if fields["price"] < 0:
                raise ValidationError("Price cannot be negative")

        item = store.update_inventory_item(item_id, fields)
        return _ok(item=item.to_dict())
    except BillingError as e:
        _log_failure("update inventory item", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("update inventory item", e)


def delete_inventory_item(
        store: BillingStore,
        item_id: Optional[str],
        drive: Optional[Resource] = None,
) -> Dict[str, Any]:
    """
    Hard delete. An unknown id succeeds without changing anything.
    When `drive` is given, the item's Drive image is deleted first.
    """
    try:
        if not item_id:
            raise ValidationError("Item ID is required")

        if drive is not None:
            current = {i.id: i for i in store.list_inventory()}.get(item_id)
            file_id = drive_service.extract_file_id(current.image_ref) if current else None
            if file_id:
                drive_service.delete_file(drive, file_id)

        store.delete_inventory_item(item_id)
        return _ok()
    except BillingError as e:
        _log_failure("delete inventory item", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("delete inventory item", e)


# ---------------------------------------------------------------------------
# Google Drive / Sheets
# ---------------------------------------------------------------------------

def upload_image(
        drive: Resource,
        image_base64: Optional[str],
        file_name: Optional[str],
        settings: Settings,
) -> Dict[str, Any]:
    try:
        url = drive_service.upload_image_from_base64(
            drive,
            image_base64 or "",
            file_name or "",
            folder_name=settings.drive_folder_name,
            public=settings.drive_public_access,
        )
        return _ok(imageUrl=url)
    except BillingError as e:
        _log_failure("upload image", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("upload image", e)


def sync_sheets(source: BillingStore, target: BillingStore, kind: str) -> Dict[str, Any]:
    """Overwrite `target` (normally the Sheets store) with `source` data."""
    try:
        result = sync_store(source, target, kind)
        return _ok(results=result.to_dict(), syncedAt=datetime.now().isoformat(timespec="seconds"))
    except BillingError as e:
        _log_failure("sync to Google Sheets", e)
        return _fail(e)
    except Exception as e:
        return _unexpected("sync to Google Sheets", e)
