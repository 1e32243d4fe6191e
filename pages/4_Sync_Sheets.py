import tempfile
from pathlib import Path

import streamlit as st

from billing_api import sync_sheets
from domain.errors import BillingError
from element_component import get_settings, get_store, require_login
from google_client import get_sheets_service
from storage.file_store import FileStore
from storage.sheets_store import SheetsStore
from utils.data_migrator import SYNC_KINDS, import_inventory_csv

st.set_page_config(page_title="Google Sheets Sync", page_icon="🔄")
st.sidebar.header("🔄 Google Sheets Sync")

require_login()

settings = get_settings()
store = get_store()

# -------------------------------------------------------------------
# Push local data to Sheets
# -------------------------------------------------------------------

st.subheader("Sync local data to Google Sheets")

if settings.storage_backend == "sheets":
    st.info("The dashboard already stores everything in Google Sheets; there is nothing to sync.")
else:
    st.write(f"Source: **{settings.storage_backend}** store. Target sheet is overwritten.")
    kind = st.radio("What to sync", SYNC_KINDS, horizontal=True)
    spreadsheet_id = st.text_input("Spreadsheet ID", value=settings.sheets_id or "")

    if st.button("Sync Now", type="primary"):
        if not spreadsheet_id:
            st.error("Spreadsheet ID is required")
        else:
            try:
                target = SheetsStore(get_sheets_service(settings), spreadsheet_id)
            except BillingError as e:
                st.error(e.message)
            else:
                result = sync_sheets(store, target, kind)
                if result["success"]:
                    st.success(f"Synced: {result['results']}")
                else:
                    st.error(result["error"])

st.divider()

# -------------------------------------------------------------------
# Import inventory from CSV
# -------------------------------------------------------------------

st.subheader("Import inventory from CSV")
st.caption("Columns: name, price, description, image_url. Names already in the inventory are skipped.")

upload = st.file_uploader("CSV file", type=["csv"])
if upload is not None and st.button("Import"):
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "inventory.csv"
        path.write_bytes(upload.getvalue())
        try:
            created, problems = import_inventory_csv(path, store)
        except BillingError as e:
            st.error(e.message)
        else:
            st.success(f"Imported {len(created)} item(s)")
            for problem in problems:
                st.warning(problem)

# -------------------------------------------------------------------
# Local JSON backup
# -------------------------------------------------------------------

st.divider()
st.subheader("Backup to local JSON files")
if st.button("Write backup"):
    result = sync_sheets(store, FileStore(settings.data_dir / "backup", seed=False), "all")
    if result["success"]:
        st.success(f"Backup written to {settings.data_dir / 'backup'}")
    else:
        st.error(result["error"])
