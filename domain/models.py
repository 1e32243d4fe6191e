# billing/domain/models.py

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple


def _to_float(value: Any, default: float = 0.0) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class LineItem:
    """
    One row of a bill. `line_total` is always quantity * unit_price;
    use `create` or the `with_*` helpers instead of setting it by hand.
    """
    item_name: str
    quantity: float
    unit_price: float
    line_total: float

    @classmethod
    def create(cls, item_name: str, quantity: float, unit_price: float) -> "LineItem":
        return cls(
            item_name=item_name,
            quantity=quantity,
            unit_price=unit_price,
            line_total=quantity * unit_price,
        )

    def with_quantity(self, quantity: float) -> "LineItem":
        return LineItem.create(self.item_name, quantity, self.unit_price)

    def with_unit_price(self, unit_price: float) -> "LineItem":
        return LineItem.create(self.item_name, self.quantity, unit_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemName": self.item_name,
            "quantity": self.quantity,
            "price": self.unit_price,
            "total": self.line_total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        quantity = _to_float(data.get("quantity"))
        unit_price = _to_float(data.get("price"))
        return cls(
            item_name=str(data.get("itemName") or ""),
            quantity=quantity,
            unit_price=unit_price,
            line_total=_to_float(data.get("total"), default=quantity * unit_price),
        )


@dataclass(frozen=True)
class Customer:
    name: str
    address: str = ""
    phone: str = ""


@dataclass(frozen=True)
class BillTotals:
    subtotal: float
    tax_amount: float
    total: float


@dataclass(frozen=True)
class Bill:
    """
    A persisted bill. Bills are never updated after creation.
    `issue_date` is kept as the stored "YYYY-MM-DD" string.
    """
    bill_number: str
    issue_date: str
    customer_name: str
    items: Tuple[LineItem, ...]
    subtotal: float
    tax_amount: float
    total: float
    customer_address: str = ""
    customer_phone: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "billNumber": self.bill_number,
            "date": self.issue_date,
            "customerName": self.customer_name,
            "customerAddress": self.customer_address,
            "customerPhone": self.customer_phone,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax_amount,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bill":
        items = tuple(LineItem.from_dict(raw) for raw in data.get("items") or [])
        return cls(
            bill_number=str(data.get("billNumber") or ""),
            issue_date=str(data.get("date") or ""),
            customer_name=str(data.get("customerName") or ""),
            customer_address=str(data.get("customerAddress") or ""),
            customer_phone=str(data.get("customerPhone") or ""),
            items=items,
            subtotal=_to_float(data.get("subtotal")),
            tax_amount=_to_float(data.get("tax")),
            total=_to_float(data.get("total")),
        )


@dataclass(frozen=True)
class NewInventoryItem:
    """Inventory item before the store has assigned it an id."""
    name: str
    unit_price: float
    description: str = ""
    image_ref: str = ""


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    unit_price: float
    description: str = ""
    image_ref: str = ""

    # wire name -> attribute name, for partial updates
    FIELD_NAMES = {
        "name": "name",
        "price": "unit_price",
        "description": "description",
        "imageUrl": "image_ref",
    }

    def merged(self, fields: Dict[str, Any]) -> "InventoryItem":
        """
        Return a copy with only the provided fields changed. Accepts either
        wire keys (price, imageUrl) or attribute names (unit_price, image_ref).
        `id` is never changed.
        """
        changes: Dict[str, Any] = {}
        attrs = set(self.FIELD_NAMES.values())
        for key, value in fields.items():
            attr = self.FIELD_NAMES.get(key, key)
            if attr not in attrs or value is None:
                continue
            if attr == "unit_price":
                value = _to_float(value)
            elif attr in ("name", "description", "image_ref"):
                value = str(value)
            changes[attr] = value
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.unit_price,
            "description": self.description,
            "imageUrl": self.image_ref,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryItem":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            unit_price=_to_float(data.get("price")),
            description=str(data.get("description") or ""),
            image_ref=str(data.get("imageUrl") or ""),
        )


@dataclass(frozen=True)
class PeriodResult:
    filtered: List[Bill]
    label: str


@dataclass(frozen=True)
class SalesSummary:
    bill_count: int
    total_sales: float


@dataclass
class SyncResult:
    kind: str
    bills_written: Optional[int] = None
    inventory_written: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        if self.bills_written is not None:
            results["bills"] = {"success": True, "count": self.bills_written}
        if self.inventory_written is not None:
            results["inventory"] = {"success": True, "count": self.inventory_written}
        return results
