# billing/storage/memory_store.py

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from domain.models import Bill, InventoryItem, NewInventoryItem
from storage.base import BillingStore, Clock, next_inventory_id


class MemoryStore(BillingStore):
    """Process-local store for tests and demos. Nothing survives a restart."""

    def __init__(
            self,
            bills: Optional[Iterable[Bill]] = None,
            inventory: Optional[Iterable[InventoryItem]] = None,
            clock: Clock = datetime.now,
    ):
        self._bills: List[Bill] = list(bills or [])
        self._inventory: List[InventoryItem] = list(inventory or [])
        self._clock = clock

    def list_bills(self) -> List[Bill]:
        return list(self._bills)

    def create_bill(self, bill: Bill) -> None:
        self._check_unique(bill, self._bills)
        self._bills.append(bill)

    def list_inventory(self) -> List[InventoryItem]:
        return list(self._inventory)

    def create_inventory_item(self, item: NewInventoryItem) -> InventoryItem:
        created = InventoryItem(
            id=next_inventory_id((i.id for i in self._inventory), self._clock),
            name=item.name,
            unit_price=item.unit_price,
            description=item.description,
            image_ref=item.image_ref,
        )
        self._inventory.append(created)
        return created

    def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        return self._merge_into(self._inventory, item_id, fields)

    def delete_inventory_item(self, item_id: str) -> None:
        self._inventory = [i for i in self._inventory if i.id != item_id]

    def replace_all_bills(self, bills: List[Bill]) -> None:
        self._bills = list(bills)

    def replace_all_inventory(self, items: List[InventoryItem]) -> None:
        self._inventory = list(items)
