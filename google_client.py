import logging
import os

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from config import Settings
from domain.errors import UpstreamError

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

logger = logging.getLogger(__name__)


def _service_account_credentials(settings: Settings):
    info = {
        "type": "service_account",
        "client_email": settings.service_account_email,
        "private_key": settings.service_account_private_key,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


def get_credentials(settings: Settings):
    """
    Service account from the environment when configured, otherwise the
    token file / installed-app OAuth flow.
    """
    if settings.has_service_account:
        return _service_account_credentials(settings)

    creds = None

    if os.path.exists(settings.token_file):
        creds = Credentials.from_authorized_user_file(settings.token_file, SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        if not settings.credentials_json:
            raise UpstreamError(
                "Google credentials not configured. Set GOOGLE_SERVICE_ACCOUNT_EMAIL and "
                "GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY, or GOOGLE_CREDENTIALS_JSON."
            )
        flow = InstalledAppFlow.from_client_secrets_file(
            settings.credentials_json,
            SCOPES,
        )
        creds = flow.run_local_server(port=0)

    with open(settings.token_file, "w") as token:
        token.write(creds.to_json())
    logger.info("Stored refreshed Google token in %s", settings.token_file)

    return creds


def get_sheets_service(settings: Settings):
    creds = get_credentials(settings)
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def get_drive_service(settings: Settings):
    creds = get_credentials(settings)
    return build("drive", "v3", credentials=creds, cache_discovery=False)
