# billing/services/inventory_service.py

from typing import Any, Dict, Iterable, List, Mapping, MutableMapping

from domain.errors import NotFoundError
from domain.models import InventoryItem, LineItem
from services.calculator import compute_line_total

Selection = Dict[str, float]

QTY_KEY_PREFIX = "qty_"


def _index(catalog: Iterable[InventoryItem]) -> Dict[str, InventoryItem]:
    return {item.id: item for item in catalog}


def build_line_items(
        catalog: Iterable[InventoryItem],
        selection: Mapping[str, float],
) -> List[LineItem]:
    """
    Turn {item_id: quantity} into LineItems, in selection order.

    Quantities <= 0 are de-selections and are skipped. An id missing from
    the catalog raises NotFoundError: the catalog snapshot is stale and
    must be refetched.
    """
    by_id = _index(catalog)
    lines: List[LineItem] = []

    for item_id, qty in selection.items():
        if qty <= 0:
            continue

        item = by_id.get(item_id)
        if item is None:
            raise NotFoundError(f"Inventory item '{item_id}' not found. Please reload the inventory.")

        lines.append(
            LineItem(
                item_name=item.name,
                quantity=qty,
                unit_price=item.unit_price,
                line_total=compute_line_total(qty, item.unit_price),
            )
        )

    return lines


def set_quantity(selection: Mapping[str, float], item_id: str, quantity: float) -> Selection:
    """Return a new selection with `item_id` set to quantity, or removed when quantity <= 0."""
    updated = dict(selection)
    if quantity > 0:
        updated[item_id] = quantity
    else:
        updated.pop(item_id, None)
    return updated


def quantity_key(item_id: str) -> str:
    """Session-state key of the quantity widget for `item_id`."""
    return f"{QTY_KEY_PREFIX}{item_id}"


def clear_selection(state: MutableMapping[str, Any]) -> None:
    """Empty the selection and drop the quantity widget values that would restore it."""
    for key in [k for k in state if str(k).startswith(QTY_KEY_PREFIX)]:
        del state[key]
    state["selection"] = {}


def selection_count(selection: Mapping[str, float]) -> float:
    return sum(qty for qty in selection.values() if qty > 0)


def selection_total(catalog: Iterable[InventoryItem], selection: Mapping[str, float]) -> float:
    """Running total shown while picking items; ids no longer in the catalog count as 0."""
    by_id = _index(catalog)
    total = 0.0
    for item_id, qty in selection.items():
        item = by_id.get(item_id)
        if item is None or qty <= 0:
            continue
        total += compute_line_total(qty, item.unit_price)
    return total


def search_inventory(catalog: Iterable[InventoryItem], term: str) -> List[InventoryItem]:
    needle = (term or "").strip().lower()
    if not needle:
        return list(catalog)
    return [item for item in catalog if needle in item.name.lower()]
