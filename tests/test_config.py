from pathlib import Path

import pytest

from config import Settings, load_settings


def test_defaults():
    settings = load_settings({})

    assert settings == Settings()
    assert settings.storage_backend == "sheets"
    assert settings.currency_symbol == "₹"
    assert settings.has_service_account is False


def test_reads_environment():
    settings = load_settings(
        {
            "APP_PASSWORD": "pw",
            "STORAGE_BACKEND": "File",
            "DATA_DIR": "/tmp/billing",
            "GOOGLE_SERVICE_ACCOUNT_EMAIL": "bot@example.iam.gserviceaccount.com",
            "GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY": "-----BEGIN-----\\nabc\\n-----END-----",
            "GOOGLE_DRIVE_PUBLIC_ACCESS": "true",
            "DEFAULT_TAX_RATE": "18",
            "STRICT_BILL_DATES": "1",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.app_password == "pw"
    assert settings.storage_backend == "file"
    assert settings.data_dir == Path("/tmp/billing")
    assert settings.service_account_private_key == "-----BEGIN-----\nabc\n-----END-----"
    assert settings.has_service_account is True
    assert settings.drive_public_access is True
    assert settings.default_tax_rate == 18.0
    assert settings.strict_bill_dates is True
    assert settings.log_level == "DEBUG"


def test_bad_tax_rate_falls_back_to_zero():
    assert load_settings({"DEFAULT_TAX_RATE": "lots"}).default_tax_rate == 0.0


def test_unknown_backend():
    with pytest.raises(ValueError, match="STORAGE_BACKEND"):
        load_settings({"STORAGE_BACKEND": "mysql"})
