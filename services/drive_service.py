import base64
import binascii
import io
import logging
import re
from typing import Optional, List, Dict

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from domain.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")
_FILE_ID_PATTERNS = (
    re.compile(r"/file/d/([\w-]+)"),
    re.compile(r"[?&]id=([\w-]+)"),
)


def _quote(value: str) -> str:
    """Escape a value for a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _execute(request, what: str):
    try:
        return request.execute()
    except HttpError as e:
        logger.error("Drive call failed (%s): %s", what, e)
        raise UpstreamError(f"Google Drive request failed while trying to {what}: {e}") from e


def get_or_create_folder(
    drive: Resource,
    folder_name: str,
    parent_folder_id: Optional[str] = None,
) -> str:
    query = f"name = '{_quote(folder_name)}' and mimeType = '{FOLDER_MIME}' and trashed = false"
    parent = parent_folder_id or "root"
    query += f" and '{parent}' in parents"

    resp = _execute(drive.files().list(q=query, fields="files(id, name)"), f"find folder {folder_name}")
    files: List[Dict] = resp.get("files", [])
    if files:
        return files[0]["id"]

    metadata = {"name": folder_name, "mimeType": FOLDER_MIME}
    if parent_folder_id:
        metadata["parents"] = [parent_folder_id]

    folder = _execute(drive.files().create(body=metadata, fields="id"), f"create folder {folder_name}")
    logger.info('Created Drive folder "%s" (id=%s)', folder_name, folder["id"])
    return folder["id"]


def upload_file_to_folder(
    drive: Resource,
    folder_id: str,
    filename: str,
    mimetype: str,
    media_stream,
) -> Dict:
    """Upload and return the created file's {id, webViewLink}."""
    media = MediaIoBaseUpload(
        media_stream,
        mimetype=mimetype,
        resumable=False,
    )

    metadata = {
        "name": filename,
        "parents": [folder_id],
    }

    return _execute(
        drive.files().create(
            body=metadata,
            media_body=media,
            fields="id, webViewLink",
        ),
        f"upload {filename}",
    )


def ensure_file_public(drive: Resource, file_id: str) -> None:
    """Make the file readable by anyone with the link."""
    _execute(
        drive.permissions().create(
            fileId=file_id,
            body={"type": "anyone", "role": "reader"},
            fields="id",
        ),
        f"share {file_id}",
    )


def view_url(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def extract_file_id(url: str) -> Optional[str]:
    """Pull the Drive file id out of a /file/d/<id>/ or ?id=<id> link."""
    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(url or "")
        if match:
            return match.group(1)
    return None


def guess_image_mimetype(base64_string: str) -> str:
    for prefix, mime in (
        ("data:image/png", "image/png"),
        ("data:image/jpeg", "image/jpeg"),
        ("data:image/jpg", "image/jpeg"),
        ("data:image/gif", "image/gif"),
        ("data:image/webp", "image/webp"),
    ):
        if base64_string.startswith(prefix):
            return mime
    return "image/jpeg"


def upload_image_bytes(
    drive: Resource,
    content: bytes,
    filename: str,
    mimetype: str = "image/jpeg",
    *,
    folder_name: str = "Product Images",
    public: bool = False,
) -> str:
    """
    Upload a product image into `folder_name` (created on first use) and
    return a link to it.
    """
    folder_id = get_or_create_folder(drive, folder_name)
    file = upload_file_to_folder(
        drive=drive,
        folder_id=folder_id,
        filename=filename,
        mimetype=mimetype,
        media_stream=io.BytesIO(content),
    )

    if public:
        ensure_file_public(drive, file["id"])

    logger.info('Uploaded image "%s" as fileId=%s', filename, file["id"])
    return file.get("webViewLink") or view_url(file["id"])


def upload_image_from_base64(
    drive: Resource,
    base64_string: str,
    filename: str,
    **kwargs,
) -> str:
    if not base64_string or not filename:
        raise ValidationError("Image data and file name are required")

    mimetype = guess_image_mimetype(base64_string)
    data = _DATA_URL_PREFIX.sub("", base64_string)
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image data is not valid base64: {e}") from e

    return upload_image_bytes(drive, content, filename, mimetype, **kwargs)


def delete_file(drive: Resource, file_id: str) -> None:
    _execute(drive.files().delete(fileId=file_id), f"delete {file_id}")
    logger.info("Deleted Drive file %s", file_id)
