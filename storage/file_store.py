# billing/storage/file_store.py

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from domain.errors import UpstreamError
from domain.models import Bill, InventoryItem, NewInventoryItem
from storage.base import BillingStore, Clock, next_inventory_id

logger = logging.getLogger(__name__)

BILLS_FILE = "bills.json"
INVENTORY_FILE = "inventory.json"

DEFAULT_INVENTORY = [
    InventoryItem(id="1", name="Product A", unit_price=100.0, description="Sample product A"),
    InventoryItem(id="2", name="Product B", unit_price=200.0, description="Sample product B"),
    InventoryItem(id="3", name="Product C", unit_price=150.0, description="Sample product C"),
    InventoryItem(id="4", name="Service X", unit_price=500.0, description="Sample service X"),
    InventoryItem(id="5", name="Service Y", unit_price=750.0, description="Sample service Y"),
]


class FileStore(BillingStore):
    """
    Bills and inventory as two JSON arrays under `data_dir`.
    The inventory file is seeded with sample items on first use.
    """

    def __init__(self, data_dir: Path | str, clock: Clock = datetime.now, seed: bool = True):
        self.data_dir = Path(data_dir)
        self.bills_path = self.data_dir / BILLS_FILE
        self.inventory_path = self.data_dir / INVENTORY_FILE
        self._clock = clock
        self._seed = seed

    # -- file helpers -------------------------------------------------------

    def _read(self, path: Path, default: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not path.exists():
            self._write(path, default)
            return list(default)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise UpstreamError(f"Could not read {path}: {e}") from e
        if not isinstance(data, list):
            raise UpstreamError(f"{path} does not contain a JSON array")
        return data

    def _write(self, path: Path, rows: List[Dict[str, Any]]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error("Error writing %s: %s", path, e)
            raise UpstreamError(f"Could not write {path}: {e}") from e

    def _read_bills(self) -> List[Bill]:
        return [Bill.from_dict(row) for row in self._read(self.bills_path, [])]

    def _read_inventory(self) -> List[InventoryItem]:
        seed = [item.to_dict() for item in DEFAULT_INVENTORY] if self._seed else []
        return [InventoryItem.from_dict(row) for row in self._read(self.inventory_path, seed)]

    def _write_inventory(self, items: List[InventoryItem]) -> None:
        self._write(self.inventory_path, [item.to_dict() for item in items])

    # -- BillingStore -------------------------------------------------------

    def list_bills(self) -> List[Bill]:
        return self._read_bills()

    def create_bill(self, bill: Bill) -> None:
        bills = self._read_bills()
        self._check_unique(bill, bills)
        bills.append(bill)
        self._write(self.bills_path, [b.to_dict() for b in bills])
        logger.info("Saved bill %s to %s", bill.bill_number, self.bills_path)

    def list_inventory(self) -> List[InventoryItem]:
        return self._read_inventory()

    def create_inventory_item(self, item: NewInventoryItem) -> InventoryItem:
        items = self._read_inventory()
        created = InventoryItem(
            id=next_inventory_id((i.id for i in items), self._clock),
            name=item.name,
            unit_price=item.unit_price,
            description=item.description,
            image_ref=item.image_ref,
        )
        items.append(created)
        self._write_inventory(items)
        return created

    def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        items = self._read_inventory()
        updated = self._merge_into(items, item_id, fields)
        self._write_inventory(items)
        return updated

    def delete_inventory_item(self, item_id: str) -> None:
        items = self._read_inventory()
        remaining = [i for i in items if i.id != item_id]
        if len(remaining) != len(items):
            self._write_inventory(remaining)

    def replace_all_bills(self, bills: List[Bill]) -> None:
        self._write(self.bills_path, [b.to_dict() for b in bills])

    def replace_all_inventory(self, items: List[InventoryItem]) -> None:
        self._write_inventory(items)
