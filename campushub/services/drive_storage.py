"""
Google Drive file hosting.

Files are uploaded into a single shared folder and made readable by anyone
with the link. The folder can be listed and files deleted by their Drive id.
Authentication uses a service account key file.
"""
import os
from typing import Dict, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
import structlog

from campushub.constants import DRIVE_PAGE_SIZE, DRIVE_SCOPES
from campushub.exceptions import ResourceNotFoundException, StorageConfigurationException, StorageException
from campushub.metrics import storage_operations_total

logger = structlog.get_logger("drive_storage")

UPLOAD_FIELDS = "id, name, mimeType, webViewLink, webContentLink"
LIST_FIELDS = "files(id, name, mimeType, webViewLink, webContentLink)"
PUBLIC_READER = {"role": "reader", "type": "anyone"}


class DriveFile:
    def __init__(self, file_id: str, name: str, mime_type: Optional[str] = None,
                 view_link: Optional[str] = None, download_link: Optional[str] = None):
        self.file_id = file_id
        self.name = name
        self.mime_type = mime_type
        self.view_link = view_link
        self.download_link = download_link

    @classmethod
    def from_api(cls, item: Dict) -> 'DriveFile':
        return cls(
            file_id=item.get("id"),
            name=item.get("name"),
            mime_type=item.get("mimeType"),
            view_link=item.get("webViewLink"),
            download_link=item.get("webContentLink"),
        )

    def to_dict(self) -> Dict:
        return {
            "fileId": self.file_id,
            "fileName": self.name,
            "mimeType": self.mime_type,
            "viewLink": self.view_link,
            "downloadLink": self.download_link,
        }


def _status_of(error: HttpError) -> Optional[int]:
    resp = getattr(error, "resp", None)
    return getattr(resp, "status", None)


class DriveStorage:
    def __init__(self, service, folder_id: Optional[str], page_size: int = DRIVE_PAGE_SIZE):
        self.service = service
        self.folder_id = folder_id or None
        self.page_size = page_size

    @classmethod
    def from_settings(cls, drive_settings):
        credentials_file = drive_settings.get("credentials_file")
        if not credentials_file or not os.path.exists(credentials_file):
            raise StorageConfigurationException(
                f"Google Drive service account file not found: {credentials_file}"
            )

        creds = service_account.Credentials.from_service_account_file(credentials_file, scopes=DRIVE_SCOPES)
        service = build('drive', 'v3', credentials=creds, cache_discovery=False)
        logger.info(f"Google Drive configured for folder: {drive_settings.get('folder_id') or '(none)'}")
        return cls(service, drive_settings.get("folder_id"), drive_settings.get("page_size") or DRIVE_PAGE_SIZE)

    def _require_folder(self, action):
        if not self.folder_id:
            raise StorageConfigurationException(f"Google Drive folder ID is required for {action}.")

    def upload(self, path: str, file_name: str, mime_type: str) -> DriveFile:
        """Upload into the shared folder, then grant public read access"""
        self._require_folder("uploads")
        metadata = {"name": file_name, "parents": [self.folder_id]}

        logger.info(f"Uploading file to Google Drive: {file_name}")
        try:
            with open(path, "rb") as fh:
                media = MediaIoBaseUpload(fh, mimetype=mime_type or "application/octet-stream", resumable=False)
                created = self.service.files().create(
                    body=metadata, media_body=media, fields=UPLOAD_FIELDS
                ).execute()
            self.service.permissions().create(fileId=created["id"], body=PUBLIC_READER).execute()
        except HttpError as e:
            storage_operations_total.labels(operation="drive_upload", status="error").inc()
            raise StorageException(f"Google Drive upload failed: {e}") from e

        storage_operations_total.labels(operation="drive_upload", status="success").inc()
        stored = DriveFile.from_api(created)
        logger.info(f"File uploaded to Google Drive: {file_name} ({stored.file_id})")
        return stored

    def list_files(self) -> List[DriveFile]:
        self._require_folder("listing files")
        try:
            results = self.service.files().list(
                q=f"'{self.folder_id}' in parents and trashed=false",
                pageSize=self.page_size,
                fields=LIST_FIELDS,
            ).execute()
        except HttpError as e:
            storage_operations_total.labels(operation="drive_list", status="error").inc()
            raise StorageException(f"Google Drive listing failed: {e}") from e

        storage_operations_total.labels(operation="drive_list", status="success").inc()
        return [DriveFile.from_api(item) for item in results.get("files", [])]

    def delete(self, file_id: str) -> str:
        try:
            self.service.files().delete(fileId=file_id).execute()
        except HttpError as e:
            storage_operations_total.labels(operation="drive_delete", status="error").inc()
            if _status_of(e) == 404:
                raise ResourceNotFoundException(f"Drive file with ID '{file_id}' not found") from e
            raise StorageException(f"Google Drive delete failed for {file_id}: {e}") from e

        storage_operations_total.labels(operation="drive_delete", status="success").inc()
        logger.info(f"File deleted from Google Drive: {file_id}")
        return file_id
