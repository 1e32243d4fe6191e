# billing/storage/sheets_store.py

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from domain.errors import UpstreamError
from domain.models import Bill, InventoryItem, NewInventoryItem
from storage.base import BillingStore, Clock, next_inventory_id
from storage.row_codec import (
    BILLS_SCHEMA,
    INVENTORY_SCHEMA,
    RowSchema,
    decode_bill_rows,
    decode_inventory_rows,
    encode_bill_row,
    encode_inventory_row,
    header_row,
)

logger = logging.getLogger(__name__)

SPREADSHEET_MIME = "application/vnd.google-apps.spreadsheet"
DEFAULT_SPREADSHEET_NAME = "Billing Software Data"


def _execute(request, what: str):
    try:
        return request.execute()
    except HttpError as e:
        logger.error("Google API call failed (%s): %s", what, e)
        raise UpstreamError(f"Google Sheets request failed while trying to {what}: {e}") from e


def get_or_create_spreadsheet(
        drive: Resource,
        spreadsheet_id: Optional[str],
        name: str = DEFAULT_SPREADSHEET_NAME,
) -> str:
    """Return `spreadsheet_id`, or create a new spreadsheet in Drive when none is configured."""
    if spreadsheet_id:
        return spreadsheet_id

    created = _execute(
        drive.files().create(
            body={"name": name, "mimeType": SPREADSHEET_MIME},
            fields="id",
        ),
        "create spreadsheet",
    )
    logger.warning(
        'Created spreadsheet "%s" (id=%s). Set GOOGLE_SHEETS_ID to keep using it.',
        name,
        created["id"],
    )
    return created["id"]


class SheetsStore(BillingStore):
    """
    Google Sheets backed store. Bills are appended as (number, JSON) rows;
    inventory changes rewrite the whole Inventory tab.
    """

    def __init__(self, sheets: Resource, spreadsheet_id: str, clock: Clock = datetime.now):
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self._clock = clock
        self._known_tabs: Set[str] = set()

    # -- low level ----------------------------------------------------------

    def _ensure_tab(self, title: str) -> None:
        if title in self._known_tabs:
            return

        meta = _execute(
            self.sheets.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields="sheets.properties.title",
            ),
            "read spreadsheet metadata",
        )
        titles = {s["properties"]["title"] for s in meta.get("sheets", [])}

        if title not in titles:
            _execute(
                self.sheets.spreadsheets().batchUpdate(
                    spreadsheetId=self.spreadsheet_id,
                    body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
                ),
                f"add sheet {title}",
            )
            logger.info('Added sheet "%s" to spreadsheet %s', title, self.spreadsheet_id)

        self._known_tabs.add(title)

    def _read_rows(self, schema: RowSchema) -> List[List[Any]]:
        self._ensure_tab(schema.sheet_name)
        resp = _execute(
            self.sheets.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=f"{schema.sheet_name}!A1:{schema.last_column}",
            ),
            f"read {schema.sheet_name}",
        )
        return resp.get("values", [])

    def _append_row(self, schema: RowSchema, row: List[str], has_header: bool) -> None:
        if not has_header:
            self._update(schema, [header_row(schema)])

        _execute(
            self.sheets.spreadsheets().values().append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{schema.sheet_name}!A:{schema.last_column}",
                valueInputOption="RAW",
                body={"values": [row]},
            ),
            f"append to {schema.sheet_name}",
        )

    def _update(self, schema: RowSchema, values: List[List[str]]) -> None:
        _execute(
            self.sheets.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{schema.sheet_name}!A1",
                valueInputOption="RAW",
                body={"values": values},
            ),
            f"write {schema.sheet_name}",
        )

    def _rewrite(self, schema: RowSchema, rows: List[List[str]]) -> None:
        self._ensure_tab(schema.sheet_name)
        _execute(
            self.sheets.spreadsheets().values().clear(
                spreadsheetId=self.spreadsheet_id,
                range=f"{schema.sheet_name}!A:{schema.last_column}",
                body={},
            ),
            f"clear {schema.sheet_name}",
        )
        self._update(schema, [header_row(schema)] + rows)

    @staticmethod
    def _has_schema_header(rows: List[List[Any]], schema: RowSchema) -> bool:
        return bool(rows) and [str(c).strip() for c in rows[0]] == schema.headers

    # -- BillingStore -------------------------------------------------------

    def list_bills(self) -> List[Bill]:
        return decode_bill_rows(self._read_rows(BILLS_SCHEMA))

    def create_bill(self, bill: Bill) -> None:
        rows = self._read_rows(BILLS_SCHEMA)
        self._check_unique(bill, decode_bill_rows(rows))
        self._append_row(BILLS_SCHEMA, encode_bill_row(bill), has_header=bool(rows))
        logger.info("Saved bill %s to sheet %s", bill.bill_number, BILLS_SCHEMA.sheet_name)

    def list_inventory(self) -> List[InventoryItem]:
        return decode_inventory_rows(self._read_rows(INVENTORY_SCHEMA))

    def create_inventory_item(self, item: NewInventoryItem) -> InventoryItem:
        rows = self._read_rows(INVENTORY_SCHEMA)
        items = decode_inventory_rows(rows)
        created = InventoryItem(
            id=next_inventory_id((i.id for i in items), self._clock),
            name=item.name,
            unit_price=item.unit_price,
            description=item.description,
            image_ref=item.image_ref,
        )

        if not rows or self._has_schema_header(rows, INVENTORY_SCHEMA):
            self._append_row(INVENTORY_SCHEMA, encode_inventory_row(created), has_header=bool(rows))
        else:
            # header in a different column order: normalise the tab
            self.replace_all_inventory(items + [created])
        return created

    def update_inventory_item(self, item_id: str, fields: Dict[str, Any]) -> InventoryItem:
        items = self.list_inventory()
        updated = self._merge_into(items, item_id, fields)
        self.replace_all_inventory(items)
        return updated

    def delete_inventory_item(self, item_id: str) -> None:
        items = self.list_inventory()
        remaining = [i for i in items if i.id != item_id]
        if len(remaining) != len(items):
            self.replace_all_inventory(remaining)

    def replace_all_bills(self, bills: List[Bill]) -> None:
        self._rewrite(BILLS_SCHEMA, [encode_bill_row(b) for b in bills])

    def replace_all_inventory(self, items: List[InventoryItem]) -> None:
        self._rewrite(INVENTORY_SCHEMA, [encode_inventory_row(i) for i in items])
