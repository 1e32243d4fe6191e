# billing/storage/base.py

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List

from domain.errors import DuplicateError, NotFoundError
from domain.models import Bill, InventoryItem, NewInventoryItem

Clock = Callable[[], datetime]


def next_inventory_id(existing_ids: Iterable[str], clock: Clock = datetime.now) -> str:
    """
    Epoch-millisecond id, bumped until it is unused. Ids of deleted items
    are lower than any new timestamp, so they are never handed out again.
    """
    taken = set(existing_ids)
    candidate = int(clock().timestamp() * 1000)
    numeric = [int(i) for i in taken if str(i).isdigit()]
    if numeric:
        candidate = max(candidate, max(numeric) + 1)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


class BillingStore(ABC):
    """
    Read/write contract the billing core needs from storage.

    Each call is independent; nothing is transactional across calls.
    Deleting an inventory id that does not exist is a silent no-op.
    """

    @abstractmethod
    def list_bills(self) -> List[Bill]:
        ...

    @abstractmethod
    def create_bill(self, bill: Bill) -> None:
        """Persist a bill. Raises DuplicateError if the bill number is taken."""

    @abstractmethod
    def list_inventory(self) -> List[InventoryItem]:
        ...

    @abstractmethod
    def create_inventory_item(self, item: NewInventoryItem) -> InventoryItem:
        ...

    @abstractmethod
    def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        """Merge only the provided fields. Raises NotFoundError for an unknown id."""

    @abstractmethod
    def delete_inventory_item(self, item_id: str) -> None:
        ...

    @abstractmethod
    def replace_all_bills(self, bills: List[Bill]) -> None:
        ...

    @abstractmethod
    def replace_all_inventory(self, items: List[InventoryItem]) -> None:
        ...

    def get_bill(self, bill_number: str) -> Bill:
        for bill in self.list_bills():
            if bill.bill_number == bill_number:
                return bill
        raise NotFoundError(f"Bill '{bill_number}' not found")

    def get_inventory_item(self, item_id: str) -> InventoryItem:
        for item in self.list_inventory():
            if item.id == item_id:
                return item
        raise NotFoundError(f"Inventory item '{item_id}' not found")

    @staticmethod
    def _check_unique(bill: Bill, existing: Iterable[Bill]) -> None:
        if any(b.bill_number == bill.bill_number for b in existing):
            raise DuplicateError("Bill with this number already exists. Please try again.")

    @staticmethod
    def _merge_into(
            items: List[InventoryItem],
            item_id: str,
            fields: Dict[str, Any],
    ) -> InventoryItem:
        """Replace items[idx] in place with the merged copy and return it."""
        for idx, item in enumerate(items):
            if item.id == item_id:
                items[idx] = item.merged(fields)
                return items[idx]
        raise NotFoundError(f"Inventory item '{item_id}' not found")
