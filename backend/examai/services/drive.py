"""
Google Drive access.

Thin async facade over the Drive v3 discovery client. Every call runs in a
worker thread; read helpers used by the session protocol live in
session_files.py, everything here raises DriveError on failure.
"""

import asyncio
import io
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from ..config.settings import Settings
from ..errors import DriveError
from ..models import UploadedFile
from ..utils import drive_query_literal

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"


def public_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=view&id={file_id}"


class DriveService:
    """Drive client bound to one set of credentials."""

    def __init__(self, settings: Settings, resource: Any = None):
        self.settings = settings
        self._resource = resource
        # httplib2 connections are not thread-safe
        self._lock = threading.Lock()

    def _credentials(self):
        if self.settings.DRIVE_SERVICE_ACCOUNT_FILE:
            return service_account.Credentials.from_service_account_file(
                self.settings.DRIVE_SERVICE_ACCOUNT_FILE,
                scopes=self.settings.DRIVE_SCOPES,
            )
        return Credentials.from_authorized_user_file(
            self.settings.DRIVE_TOKEN_FILE, self.settings.DRIVE_SCOPES
        )

    @property
    def resource(self):
        if self._resource is None:
            try:
                self._resource = build(
                    "drive", "v3", credentials=self._credentials(), cache_discovery=False
                )
                logger.info("✅ Google Drive client authenticated")
            except Exception as e:
                logger.error(f"❌ Drive client creation failed: {e}")
                raise DriveError(
                    "Google Drive authentication failed - check the token or service account file"
                ) from e
        return self._resource

    async def _run(self, call: Callable[[Any], Any]) -> Any:
        def work():
            with self._lock:
                return call(self.resource)

        return await asyncio.to_thread(work)

    # ============ METADATA ============

    async def get_metadata(self, file_id: str, fields: str = "id, name, mimeType") -> Dict[str, Any]:
        try:
            return await self._run(
                lambda d: d.files()
                .get(fileId=file_id, fields=fields, supportsAllDrives=True)
                .execute()
            )
        except DriveError:
            raise
        except Exception as e:
            raise DriveError(f"Drive file {file_id} is not accessible: {e}") from e

    async def list_children(self, parent_id: str, folders_only: bool = False) -> List[Dict[str, Any]]:
        query = f"'{drive_query_literal(parent_id)}' in parents and trashed=false"
        if folders_only:
            query += f" and mimeType='{FOLDER_MIME}'"
        try:
            result = await self._run(
                lambda d: d.files()
                .list(q=query, fields="files(id, name, mimeType)", supportsAllDrives=True)
                .execute()
            )
        except DriveError:
            raise
        except Exception as e:
            raise DriveError(f"Listing folder {parent_id} failed: {e}") from e
        return result.get("files", [])

    # ============ FOLDERS ============

    async def find_or_create_folder(self, parent_id: str, name: str) -> str:
        """Return the id of the folder `name` under `parent_id`, creating it if needed."""
        query = (
            f"'{drive_query_literal(parent_id)}' in parents and "
            f"name='{drive_query_literal(name)}' and "
            f"mimeType='{FOLDER_MIME}' and trashed=false"
        )
        try:
            found = await self._run(
                lambda d: d.files()
                .list(q=query, fields="files(id, name)", supportsAllDrives=True)
                .execute()
            )
            files = found.get("files", [])
            if files:
                return files[0]["id"]

            folder = await self._run(
                lambda d: d.files()
                .create(
                    body={"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]},
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except DriveError:
            raise
        except Exception as e:
            logger.error(f"❌ Error ensuring folder '{name}': {e}")
            raise DriveError("Failed to ensure folder structure") from e

        logger.info(f"📁 Created folder '{name}' ({folder['id']})")
        return folder["id"]

    # ============ FILES ============

    async def upload_bytes(
        self,
        data: bytes,
        file_name: str,
        mime_type: str,
        parent_id: str,
    ) -> UploadedFile:
        """Create a file under `parent_id` and share it read-only with anyone holding the link."""
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type or "application/octet-stream")
        try:
            created = await self._run(
                lambda d: d.files()
                .create(
                    body={"name": file_name, "parents": [parent_id]},
                    media_body=media,
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            file_id = created["id"]
            await self._run(
                lambda d: d.permissions()
                .create(
                    fileId=file_id,
                    body={"role": "reader", "type": "anyone"},
                    supportsAllDrives=True,
                )
                .execute()
            )
        except DriveError:
            raise
        except Exception as e:
            logger.error(f"❌ Upload failed: {e}")
            raise DriveError("Upload to Drive failed") from e

        return UploadedFile(file_id=file_id, url=public_url(file_id))

    async def download_bytes(self, file_id: str) -> bytes:
        try:
            content = await self._run(
                lambda d: d.files().get_media(fileId=file_id, supportsAllDrives=True).execute()
            )
        except DriveError:
            raise
        except Exception as e:
            raise DriveError(f"Download of {file_id} failed: {e}") from e
        if isinstance(content, str):
            return content.encode("utf-8")
        return content or b""

    async def update_bytes(self, file_id: str, data: bytes, mime_type: str) -> None:
        """Overwrite the content of an existing file."""
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type)
        try:
            await self._run(
                lambda d: d.files()
                .update(fileId=file_id, media_body=media, supportsAllDrives=True)
                .execute()
            )
        except DriveError:
            raise
        except Exception as e:
            raise DriveError(f"Update of {file_id} failed: {e}") from e

    async def delete_file(self, file_id: str) -> None:
        try:
            await self._run(
                lambda d: d.files().delete(fileId=file_id, supportsAllDrives=True).execute()
            )
        except DriveError:
            raise
        except Exception as e:
            raise DriveError(f"Delete of {file_id} failed: {e}") from e

    async def clear_folder(self, parent_id: str) -> int:
        """Delete every file directly inside a folder. Returns how many were removed."""
        removed = 0
        for child in await self.list_children(parent_id):
            await self.delete_file(child["id"])
            removed += 1
        return removed

    async def check_connection(self, folder_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """List the first entries of the root folder; raises if Drive is unreachable."""
        return (await self.list_children(folder_id or self.settings.DRIVE_ROOT_FOLDER_ID))[:10]
