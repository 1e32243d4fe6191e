# billing/storage/supabase_store.py

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client

from domain.errors import DuplicateError, UpstreamError
from domain.models import Bill, InventoryItem, NewInventoryItem
from storage.base import BillingStore, Clock, next_inventory_id

logger = logging.getLogger(__name__)

BILLS_TABLE = "bills"
INVENTORY_TABLE = "inventory"

# Postgres unique_violation, reported when an insert hits an existing primary key
UNIQUE_VIOLATION = "23505"

DUPLICATE_BILL = "Bill with this number already exists. Please try again."


def _error_code(error) -> Optional[str]:
    if isinstance(error, dict):
        return error.get("code")
    return getattr(error, "code", None)


def _check(resp, what: str, duplicate_message: Optional[str] = None):
    error = getattr(resp, "error", None)
    if error:
        if duplicate_message and _error_code(error) == UNIQUE_VIOLATION:
            raise DuplicateError(duplicate_message)
        raise UpstreamError(f"{what} failed: {resp.error}")
    return resp.data or []


def _inventory_from_row(row: Dict[str, Any]) -> InventoryItem:
    return InventoryItem(
        id=str(row["id"]),
        name=row.get("name") or "",
        unit_price=float(row.get("price") or 0),
        description=row.get("description") or "",
        image_ref=row.get("image_url") or "",
    )


def _inventory_to_row(item: InventoryItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "price": item.unit_price,
        "description": item.description,
        "image_url": item.image_ref,
    }


class SupabaseStore(BillingStore):
    """
    Supabase tables:
      bills(bill_number text primary key, data jsonb)
      inventory(id text primary key, name, price, description, image_url)
    """

    def __init__(self, client: Client, schema: str = "public", clock: Clock = datetime.now):
        self.client = client
        self.schema = schema
        self._clock = clock

    def _table(self, name: str):
        return self.client.schema(self.schema).table(name)

    def _run(self, query, what: str, duplicate_message: Optional[str] = None) -> List[Dict[str, Any]]:
        try:
            resp = query.execute()
        except Exception as e:
            if duplicate_message and _error_code(e) == UNIQUE_VIOLATION:
                raise DuplicateError(duplicate_message) from e
            logger.error("Supabase %s failed: %s", what, e)
            raise UpstreamError(f"{what} failed: {e}") from e
        return _check(resp, what, duplicate_message)

    def list_bills(self) -> List[Bill]:
        rows = self._run(
            self._table(BILLS_TABLE).select("bill_number, data").order("bill_number"),
            "Fetch bills",
        )
        return [Bill.from_dict(row["data"]) for row in rows if row.get("data")]

    def create_bill(self, bill: Bill) -> None:
        existing = self._run(
            self._table(BILLS_TABLE).select("bill_number").eq("bill_number", bill.bill_number).limit(1),
            "Bill lookup",
        )
        if existing:
            raise DuplicateError(DUPLICATE_BILL)

        # a concurrent writer can still take the number between lookup and insert
        self._run(
            self._table(BILLS_TABLE).insert({"bill_number": bill.bill_number, "data": bill.to_dict()}),
            "Insert bill",
            duplicate_message=DUPLICATE_BILL,
        )
        logger.info("Saved bill %s to %s.%s", bill.bill_number, self.schema, BILLS_TABLE)

    def list_inventory(self) -> List[InventoryItem]:
        rows = self._run(self._table(INVENTORY_TABLE).select("*").order("id"), "Fetch inventory")
        return [_inventory_from_row(row) for row in rows]

    def create_inventory_item(self, item: NewInventoryItem) -> InventoryItem:
        ids = self._run(self._table(INVENTORY_TABLE).select("id"), "Fetch inventory ids")
        created = InventoryItem(
            id=next_inventory_id((str(r["id"]) for r in ids), self._clock),
            name=item.name,
            unit_price=item.unit_price,
            description=item.description,
            image_ref=item.image_ref,
        )
        self._run(self._table(INVENTORY_TABLE).insert(_inventory_to_row(created)), "Insert inventory item")
        return created

    def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        current = self.get_inventory_item(item_id)
        updated = current.merged(fields)
        row = _inventory_to_row(updated)
        row.pop("id")
        self._run(self._table(INVENTORY_TABLE).update(row).eq("id", item_id), "Update inventory item")
        return updated

    def delete_inventory_item(self, item_id: str) -> None:
        self._run(self._table(INVENTORY_TABLE).delete().eq("id", item_id), "Delete inventory item")

    def replace_all_bills(self, bills: List[Bill]) -> None:
        self._run(self._table(BILLS_TABLE).delete().neq("bill_number", ""), "Clear bills")
        if bills:
            self._run(
                self._table(BILLS_TABLE).insert(
                    [{"bill_number": b.bill_number, "data": b.to_dict()} for b in bills]
                ),
                "Insert bills",
            )

    def replace_all_inventory(self, items: List[InventoryItem]) -> None:
        self._run(self._table(INVENTORY_TABLE).delete().neq("id", ""), "Clear inventory")
        if items:
            self._run(
                self._table(INVENTORY_TABLE).insert([_inventory_to_row(i) for i in items]),
                "Insert inventory",
            )
