"""
Mapping between records and spreadsheet rows.

Version 1 layout (both tabs start with a header row):

  Bills      A: Bill Number        B: Bill Data (JSON)
  Inventory  A: ID  B: Product Name  C: Price  D: Description  E: Image URL

Inventory columns are located by header name, so reordering columns in the
sheet does not break decoding. Per-field defaults for blank cells are listed
in INVENTORY_SCHEMA.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from domain.errors import UpstreamError
from domain.models import Bill, InventoryItem

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

BILLS_SHEET = "Bills"
INVENTORY_SHEET = "Inventory"


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _price(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class ColumnSpec:
    attr: str
    header: str
    default: Any
    parse: Callable[[Any], Any]
    encode: Callable[[Any], str] = str


@dataclass(frozen=True)
class RowSchema:
    version: int
    sheet_name: str
    columns: Sequence[ColumnSpec]

    @property
    def headers(self) -> List[str]:
        return [c.header for c in self.columns]

    @property
    def last_column(self) -> str:
        return chr(ord("A") + len(self.columns) - 1)


BILLS_SCHEMA = RowSchema(
    version=SCHEMA_VERSION,
    sheet_name=BILLS_SHEET,
    columns=(
        ColumnSpec("bill_number", "Bill Number", "", _text),
        ColumnSpec("data", "Bill Data (JSON)", "", _text),
    ),
)

INVENTORY_SCHEMA = RowSchema(
    version=SCHEMA_VERSION,
    sheet_name=INVENTORY_SHEET,
    columns=(
        ColumnSpec("id", "ID", "", _text),
        ColumnSpec("name", "Product Name", "", _text),
        ColumnSpec("unit_price", "Price", 0.0, _price, encode=lambda v: repr(float(v))),
        ColumnSpec("description", "Description", "", _text),
        ColumnSpec("image_ref", "Image URL", "", _text),
    ),
)


def _cell(row: Sequence[Any], idx: Optional[int]) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _column_positions(schema: RowSchema, header_row: Optional[Sequence[Any]]) -> Dict[str, Optional[int]]:
    """
    attr -> column index, read from the header row. Without a header row the
    schema's own order is assumed. A sheet whose header lacks the key column
    is treated as misconfigured.
    """
    if not header_row:
        return {c.attr: idx for idx, c in enumerate(schema.columns)}

    found = {_text(h): idx for idx, h in enumerate(header_row)}
    positions = {c.attr: found.get(c.header) for c in schema.columns}

    key = schema.columns[0]
    if positions[key.attr] is None:
        raise UpstreamError(
            f"Sheet '{schema.sheet_name}' has no '{key.header}' column. Found: {list(found)}"
        )
    return positions


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------

def encode_bill_row(bill: Bill) -> List[str]:
    payload = bill.to_dict()
    payload["schemaVersion"] = SCHEMA_VERSION
    return [bill.bill_number, json.dumps(payload)]


def decode_bill_rows(rows: Sequence[Sequence[Any]]) -> List[Bill]:
    """
    Decode a Bills tab including its header row. Rows missing the number
    or the JSON blob are skipped; malformed JSON is logged and skipped.
    """
    if not rows:
        return []

    header, body = _split_header(BILLS_SCHEMA, rows)
    pos = _column_positions(BILLS_SCHEMA, header)

    bills: List[Bill] = []
    for line_no, row in enumerate(body, start=2 if header else 1):
        number = _text(_cell(row, pos["bill_number"]))
        blob = _text(_cell(row, pos["data"]))
        if not number or not blob:
            continue
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            logger.error("Skipping bill row %d (%s): invalid JSON: %s", line_no, number, e)
            continue
        if not isinstance(data, dict):
            logger.error("Skipping bill row %d (%s): JSON is not an object", line_no, number)
            continue

        raw_version = data.get("schemaVersion", SCHEMA_VERSION)
        try:
            version = int(raw_version)
        except (TypeError, ValueError):
            logger.warning("Bill %s has an unreadable schema version %r", number, raw_version)
            version = SCHEMA_VERSION
        if version > SCHEMA_VERSION:
            logger.warning("Bill %s uses schema version %s (known: %s)", number, version, SCHEMA_VERSION)

        data.setdefault("billNumber", number)
        bills.append(Bill.from_dict(data))

    return bills


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

def encode_inventory_row(item: InventoryItem) -> List[str]:
    return [
        col.encode(getattr(item, col.attr) if getattr(item, col.attr) is not None else col.default)
        for col in INVENTORY_SCHEMA.columns
    ]


def decode_inventory_rows(rows: Sequence[Sequence[Any]]) -> List[InventoryItem]:
    if not rows:
        return []

    header, body = _split_header(INVENTORY_SCHEMA, rows)
    pos = _column_positions(INVENTORY_SCHEMA, header)

    items: List[InventoryItem] = []
    for row in body:
        values: Dict[str, Any] = {}
        for col in INVENTORY_SCHEMA.columns:
            raw = _cell(row, pos[col.attr])
            values[col.attr] = col.default if raw in (None, "") else col.parse(raw)

        if not values["id"] or not values["name"]:
            continue
        items.append(InventoryItem(**values))

    return items


def header_row(schema: RowSchema) -> List[str]:
    return list(schema.headers)


def _split_header(schema: RowSchema, rows: Sequence[Sequence[Any]]):
    first = rows[0]
    if first and _text(first[0]) in schema.headers:
        return first, rows[1:]
    return None, rows
