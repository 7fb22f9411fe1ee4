"""Google Drive mirror for staged uploads."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload
from sqlalchemy.orm import Session

from formdesk.core.config import settings
from formdesk.core.structured_logging import build_log_context
from formdesk.db.models import Form
from formdesk.services.upload_service import StagedFile

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.file"]
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".txt": "text/plain",
}


def guess_mime_type(file_name: str) -> str:
    ext = os.path.splitext(file_name)[1].lower()
    return _MIME_TYPES.get(ext, "application/octet-stream")


def form_folder_name(form_id: int) -> str:
    return f"Form_{form_id}"


def load_service_account_credentials() -> Credentials:
    """Credentials from inline JSON (preferred) or a key file path."""
    if settings.GOOGLE_SERVICE_ACCOUNT_JSON:
        info = json.loads(settings.GOOGLE_SERVICE_ACCOUNT_JSON)
        return Credentials.from_service_account_info(info, scopes=SCOPES)
    if settings.GOOGLE_SERVICE_ACCOUNT_KEY_FILE:
        return Credentials.from_service_account_file(
            settings.GOOGLE_SERVICE_ACCOUNT_KEY_FILE, scopes=SCOPES
        )
    raise RuntimeError(
        "Google Drive is enabled but neither GOOGLE_SERVICE_ACCOUNT_JSON "
        "nor GOOGLE_SERVICE_ACCOUNT_KEY_FILE is set"
    )


class GoogleDriveClient:
    """Thin wrapper over a Drive v3 service object."""

    def __init__(self, service: Any, root_folder_id: str):
        self.service = service
        self.root_folder_id = root_folder_id

    @classmethod
    def from_settings(cls) -> "GoogleDriveClient":
        credentials = load_service_account_credentials()
        service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        return cls(service, settings.GOOGLE_DRIVE_ROOT_FOLDER_ID)

    def find_folder(self, name: str) -> str | None:
        query = (
            f"name='{name}' and mimeType='{FOLDER_MIME_TYPE}' "
            f"and '{self.root_folder_id}' in parents and trashed=false"
        )
        result = (
            self.service.files()
            .list(q=query, fields="files(id, name)", spaces="drive")
            .execute()
        )
        files = result.get("files", [])
        return files[0]["id"] if files else None

    def create_folder(self, name: str) -> str:
        metadata = {
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [self.root_folder_id],
        }
        folder = self.service.files().create(body=metadata, fields="id").execute()
        return folder["id"]

    def ensure_form_folder(self, form_id: int) -> str:
        """Return the form's folder id, creating the folder when missing."""
        name = form_folder_name(form_id)
        return self.find_folder(name) or self.create_folder(name)

    def upload_file(
        self,
        path: str,
        name: str,
        folder_id: str,
        mime_type: str | None = None,
    ) -> str:
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        media = MediaFileUpload(path, mimetype=mime_type or guess_mime_type(name), resumable=False)
        uploaded = (
            self.service.files()
            .create(body={"name": name, "parents": [folder_id]}, media_body=media, fields="id")
            .execute()
        )
        return uploaded["id"]

    def get_shareable_link(self, file_id: str) -> str | None:
        """Make the file readable by link and return its web view URL."""
        self.service.permissions().create(
            fileId=file_id, body={"role": "reader", "type": "anyone"}
        ).execute()
        file = self.service.files().get(fileId=file_id, fields="webViewLink").execute()
        return file.get("webViewLink")


def build_drive_client() -> GoogleDriveClient | None:
    """Construct the process-wide client at startup; None when the mirror is off."""
    if not settings.GOOGLE_DRIVE_ENABLED:
        return None
    if not settings.GOOGLE_DRIVE_ROOT_FOLDER_ID:
        raise RuntimeError("GOOGLE_DRIVE_ROOT_FOLDER_ID is required when Google Drive is enabled")
    client = GoogleDriveClient.from_settings()
    logger.info("drive_client_initialized")
    return client


def mirror_staged_files(
    db: Session,
    client: GoogleDriveClient,
    form: Form,
    staged: list[StagedFile],
) -> None:
    """
    Copy staged files into the form's Drive folder.

    The folder id is cached on the form after first use. Each file's
    shareable link (its file id when Drive returns none) is logged.
    """
    if not staged:
        return

    folder_id = form.drive_folder_id
    if not folder_id:
        folder_id = client.ensure_form_folder(form.id)
        form.drive_folder_id = folder_id
        db.commit()

    for item in staged:
        file_id = client.upload_file(item.stored_path, item.stored_name, folder_id, item.mime_type)
        link = client.get_shareable_link(file_id) or file_id
        logger.info(
            "drive_file_mirrored",
            extra=build_log_context(form_id=form.id)
            | {"stored_name": item.stored_name, "drive_link": link},
        )

    logger.info(
        "drive_mirror_completed",
        extra=build_log_context(form_id=form.id) | {"file_count": len(staged)},
    )
