# billing/storage/factory.py

import logging

from config import Settings
from domain.errors import UpstreamError
from storage.base import BillingStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> BillingStore:
    """Build the store selected by STORAGE_BACKEND."""
    backend = settings.storage_backend
    logger.info("Using %s storage backend", backend)

    if backend == "memory":
        from storage.memory_store import MemoryStore
        return MemoryStore()

    if backend == "file":
        from storage.file_store import FileStore
        return FileStore(settings.data_dir)

    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise UpstreamError("Set SUPABASE_URL and SUPABASE_KEY to use the supabase backend")
        from supabase import create_client
        from storage.supabase_store import SupabaseStore
        client = create_client(settings.supabase_url, settings.supabase_key)
        return SupabaseStore(client, schema=settings.supabase_schema)

    if backend == "sheets":
        from google_client import get_drive_service, get_sheets_service
        from storage.sheets_store import SheetsStore, get_or_create_spreadsheet
        sheets = get_sheets_service(settings)
        spreadsheet_id = settings.sheets_id
        if not spreadsheet_id:
            spreadsheet_id = get_or_create_spreadsheet(get_drive_service(settings), None)
        return SheetsStore(sheets, spreadsheet_id)

    raise UpstreamError(f"Unknown storage backend '{backend}'")
