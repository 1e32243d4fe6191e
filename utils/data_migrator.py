import csv
import logging
import math
from pathlib import Path
from typing import Dict, List, Iterable, Tuple

from domain.errors import ValidationError
from domain.models import InventoryItem, NewInventoryItem, SyncResult
from storage.base import BillingStore

logger = logging.getLogger(__name__)

SYNC_KINDS = ("bills", "inventory", "all")

CSV_COLUMNS = ["name", "price", "description", "image_url"]


def sync_store(source: BillingStore, target: BillingStore, kind: str) -> SyncResult:
    """
    Copy bills and/or inventory from `source` into `target`, overwriting
    whatever the target held. Used to push local data to Google Sheets.
    """
    if kind not in SYNC_KINDS:
        raise ValidationError('Invalid type. Must be "bills", "inventory", or "all"')

    result = SyncResult(kind=kind)

    if kind in ("bills", "all"):
        bills = source.list_bills()
        target.replace_all_bills(bills)
        result.bills_written = len(bills)
        logger.info("Synced %d bill(s)", len(bills))

    if kind in ("inventory", "all"):
        items = source.list_inventory()
        target.replace_all_inventory(items)
        result.inventory_written = len(items)
        logger.info("Synced %d inventory item(s)", len(items))

    return result


def read_inventory_csv(file_name: Path | str) -> Tuple[List[NewInventoryItem], List[str]]:
    """
    Reads a headered CSV (name, price, description, image_url) and returns
    (items, problems). Rows without a name or with a bad price are reported
    in `problems` and skipped. Duplicate names keep the first occurrence.
    """
    items: List[NewInventoryItem] = []
    problems: List[str] = []
    seen = set()

    with open(file_name, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            raise ValidationError("CSV has no header row. Expected: " + ", ".join(CSV_COLUMNS))

        header = [c.strip().lower() for c in reader.fieldnames if c]
        missing = [c for c in ("name", "price") if c not in header]
        if missing:
            raise ValidationError(f"CSV missing columns: {missing}. Found: {header}")

        for line_no, raw in enumerate(reader, start=2):
            row: Dict[str, str] = {
                (k or "").strip().lower(): (v or "").strip() for k, v in raw.items()
            }
            name = row.get("name", "")
            if not name:
                problems.append(f"line {line_no}: missing name")
                continue

            key = name.lower()
            if key in seen:
                continue

            try:
                price = float(row.get("price", ""))
            except ValueError:
                problems.append(f"line {line_no}: invalid price '{row.get('price', '')}'")
                continue
            if not math.isfinite(price):
                problems.append(f"line {line_no}: invalid price '{row.get('price', '')}'")
                continue
            if price < 0:
                problems.append(f"line {line_no}: negative price '{row.get('price', '')}'")
                continue

            seen.add(key)
            items.append(
                NewInventoryItem(
                    name=name,
                    unit_price=price,
                    description=row.get("description", ""),
                    image_ref=row.get("image_url", ""),
                )
            )

    return items, problems


def import_inventory_csv(file_name: Path | str, store: BillingStore) -> Tuple[List[InventoryItem], List[str]]:
    """
    Add every CSV row whose name is not in the store yet.
    Returns (created_items, problems).
    """
    items, problems = read_inventory_csv(file_name)
    existing = {item.name.strip().lower() for item in store.list_inventory()}

    created: List[InventoryItem] = []
    for item in _new_only(items, existing):
        created.append(store.create_inventory_item(item))

    logger.info("Imported %d inventory item(s) from %s", len(created), file_name)
    return created, problems


def _new_only(items: Iterable[NewInventoryItem], existing_names: set) -> Iterable[NewInventoryItem]:
    for item in items:
        if item.name.strip().lower() in existing_names:
            logger.info('Skipping "%s": already in inventory', item.name)
            continue
        yield item
