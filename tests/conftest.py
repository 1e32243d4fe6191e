import re
from datetime import datetime
from typing import Dict, List

import httplib2
import pytest
from googleapiclient.errors import HttpError

from domain.models import Bill, InventoryItem, LineItem

FIXED_NOW = datetime(2024, 3, 10, 12, 0, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


def millis(moment: datetime = FIXED_NOW) -> int:
    return int(moment.timestamp() * 1000)


def make_http_error(status: int = 500) -> HttpError:
    return HttpError(httplib2.Response({"status": str(status)}), b'{"error": {"message": "boom"}}')


def make_bill(number: str = "BILL-1", issue_date: str = "2024-03-10", total: float = 100.0, **kwargs) -> Bill:
    items = kwargs.pop("items", (LineItem.create("Product A", 1, total),))
    subtotal = sum(i.line_total for i in items)
    return Bill(
        bill_number=number,
        issue_date=issue_date,
        customer_name=kwargs.pop("customer_name", "Alice"),
        items=tuple(items),
        subtotal=subtotal,
        tax_amount=total - subtotal,
        total=total,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Google API fakes. Each call returns an object with .execute(), like the
# discovery client does.
# ---------------------------------------------------------------------------

class _Request:
    def __init__(self, service, fn):
        self._service = service
        self._fn = fn

    def execute(self):
        if self._service.fail_next:
            self._service.fail_next = False
            raise make_http_error()
        return self._fn()


def _tab(range_: str) -> str:
    return range_.split("!", 1)[0]


class _FakeValues:
    def __init__(self, service: "FakeSheetsService"):
        self.service = service

    def get(self, spreadsheetId, range):
        def run():
            rows = self.service.tabs.get(_tab(range), [])
            return {"range": range, "values": [list(r) for r in rows]} if rows else {"range": range}
        return _Request(self.service, run)

    def append(self, spreadsheetId, range, valueInputOption, body):
        def run():
            self.service.tabs.setdefault(_tab(range), []).extend(list(r) for r in body["values"])
            self.service.appends += 1
            return {"updates": {"updatedRows": len(body["values"])}}
        return _Request(self.service, run)

    def update(self, spreadsheetId, range, valueInputOption, body):
        def run():
            grid = self.service.tabs.setdefault(_tab(range), [])
            for idx, row in enumerate(body["values"]):
                if idx < len(grid):
                    grid[idx] = list(row)
                else:
                    grid.append(list(row))
            return {"updatedRows": len(body["values"])}
        return _Request(self.service, run)

    def clear(self, spreadsheetId, range, body):
        def run():
            self.service.tabs[_tab(range)] = []
            self.service.clears += 1
            return {"clearedRange": range}
        return _Request(self.service, run)


class _FakeSpreadsheets:
    def __init__(self, service: "FakeSheetsService"):
        self.service = service

    def get(self, spreadsheetId, fields=None):
        def run():
            self.service.metadata_reads += 1
            return {"sheets": [{"properties": {"title": t}} for t in self.service.tabs]}
        return _Request(self.service, run)

    def batchUpdate(self, spreadsheetId, body):
        def run():
            for req in body["requests"]:
                self.service.tabs.setdefault(req["addSheet"]["properties"]["title"], [])
            return {"replies": [{} for _ in body["requests"]]}
        return _Request(self.service, run)

    def values(self):
        return _FakeValues(self.service)


class FakeSheetsService:
    """In-memory spreadsheet: tab title -> list of rows."""

    def __init__(self, tabs: Dict[str, List[List[str]]] = None):
        self.tabs: Dict[str, List[List[str]]] = tabs or {}
        self.metadata_reads = 0
        self.appends = 0
        self.clears = 0
        self.fail_next = False

    def spreadsheets(self):
        return _FakeSpreadsheets(self)


class _FakeFiles:
    def __init__(self, drive: "FakeDrive"):
        self.drive = drive

    def list(self, q, fields=None):
        def run():
            quoted = re.search(r"name = '((?:[^'\\]|\\.)*)'", q).group(1)
            name = re.sub(r"\\(.)", r"\1", quoted)
            self.drive.queries.append(q)
            matches = [
                {"id": fid, "name": meta["name"]}
                for fid, meta in self.drive.files_by_id.items()
                if meta["name"] == name and meta.get("mimeType") == "application/vnd.google-apps.folder"
            ]
            return {"files": matches}
        return _Request(self.drive, run)

    def create(self, body, fields=None, media_body=None):
        def run():
            self.drive.counter += 1
            file_id = f"file{self.drive.counter}"
            meta = dict(body)
            if media_body is not None:
                meta["content"] = media_body.getbytes(0, media_body.size())
                meta["mimeType"] = media_body.mimetype()
                self.drive.files_by_id[file_id] = meta
                return {"id": file_id, "webViewLink": f"https://drive.google.com/file/d/{file_id}/view"}
            self.drive.files_by_id[file_id] = meta
            return {"id": file_id}
        return _Request(self.drive, run)

    def delete(self, fileId):
        def run():
            self.drive.files_by_id.pop(fileId, None)
            self.drive.deleted.append(fileId)
            return ""
        return _Request(self.drive, run)


class _FakePermissions:
    def __init__(self, drive: "FakeDrive"):
        self.drive = drive

    def create(self, fileId, body, fields=None):
        def run():
            self.drive.shared.append((fileId, body))
            return {"id": "perm1"}
        return _Request(self.drive, run)


class FakeDrive:
    def __init__(self):
        self.files_by_id: Dict[str, dict] = {}
        self.shared: List[tuple] = []
        self.queries: List[str] = []
        self.deleted: List[str] = []
        self.counter = 0
        self.fail_next = False

    def files(self):
        return _FakeFiles(self)

    def permissions(self):
        return _FakePermissions(self)

    def folders(self) -> List[str]:
        return [
            fid for fid, meta in self.files_by_id.items()
            if meta.get("mimeType") == "application/vnd.google-apps.folder"
        ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def catalog():
    return [
        InventoryItem(id="1", name="Product A", unit_price=100.0, description="Sample product A"),
        InventoryItem(id="2", name="Product B", unit_price=200.0),
        InventoryItem(id="3", name="Service X", unit_price=500.0),
    ]


@pytest.fixture
def sheets():
    return FakeSheetsService()


@pytest.fixture
def drive():
    return FakeDrive()
