"""Runtime configuration for the billing dashboard, read from the environment / .env."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

STORAGE_BACKENDS = ("sheets", "file", "supabase", "memory")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _float(value: Optional[str], default: float) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    app_password: Optional[str] = None
    storage_backend: str = "sheets"
    data_dir: Path = Path("data")

    # Google Sheets / Drive
    sheets_id: Optional[str] = None
    service_account_email: Optional[str] = None
    service_account_private_key: Optional[str] = None
    credentials_json: Optional[str] = None
    token_file: str = "token_sheets.json"
    drive_folder_name: str = "Product Images"
    drive_public_access: bool = False

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_schema: str = "public"

    # Billing
    default_tax_rate: float = 0.0
    currency_symbol: str = "₹"
    store_header: str = "Billing Software"
    strict_bill_dates: bool = False

    log_level: str = "INFO"

    @property
    def has_service_account(self) -> bool:
        return bool(self.service_account_email and self.service_account_private_key)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from `env` (defaults to os.environ after loading .env).
    """
    if env is None:
        load_dotenv()
        env = os.environ

    backend = (env.get("STORAGE_BACKEND") or "sheets").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got '{backend}'"
        )

    private_key = env.get("GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY")
    if private_key:
        # keys pasted into .env usually carry literal "\n"
        private_key = private_key.replace("\\n", "\n")

    return Settings(
        app_password=env.get("APP_PASSWORD") or None,
        storage_backend=backend,
        data_dir=Path(env.get("DATA_DIR") or "data"),
        sheets_id=env.get("GOOGLE_SHEETS_ID") or None,
        service_account_email=env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL") or None,
        service_account_private_key=private_key or None,
        credentials_json=env.get("GOOGLE_CREDENTIALS_JSON") or None,
        token_file=env.get("GOOGLE_TOKEN_FILE") or "token_sheets.json",
        drive_folder_name=env.get("GOOGLE_DRIVE_FOLDER_NAME") or "Product Images",
        drive_public_access=_flag(env.get("GOOGLE_DRIVE_PUBLIC_ACCESS")),
        supabase_url=env.get("SUPABASE_URL") or None,
        supabase_key=env.get("SUPABASE_KEY") or None,
        supabase_schema=env.get("SCHEMA") or "public",
        default_tax_rate=_float(env.get("DEFAULT_TAX_RATE"), 0.0),
        currency_symbol=env.get("CURRENCY_SYMBOL") or "₹",
        store_header=env.get("STORE_HEADER") or "Billing Software",
        strict_bill_dates=_flag(env.get("STRICT_BILL_DATES")),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
