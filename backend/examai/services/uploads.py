"""User file uploads into the per-user Drive folders."""

import logging
from typing import Any, Dict

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..errors import ApiError
from ..utils import now_iso
from .audit import AuditLog
from .drive import DriveService
from .folders import UserFolderService

logger = logging.getLogger(__name__)

# image kind -> (folder attribute, users field)
IMAGE_SLOTS = {
    "profile": ("profile", "photoURL"),
    "background": ("background", "backgroundURL"),
}


class UploadService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        drive: DriveService,
        folders: UserFolderService,
        audit: AuditLog,
    ):
        self.db = db
        self.drive = drive
        self.folders = folders
        self.audit = audit

    async def upload_material(
        self, uid: str, data: bytes, file_name: str, mime_type: str, audit: bool = True
    ) -> Dict[str, Any]:
        """Store a file in users/<uid>/uploads and record it in `uploads`."""
        folders = await self.folders.get_structure(uid)
        uploaded = await self.drive.upload_bytes(data, file_name, mime_type, folders.uploads)

        await self.db.uploads.insert_one(
            {
                "ownerUid": uid,
                "fileId": uploaded.file_id,
                "filename": file_name,
                "mimeType": mime_type,
                "size": len(data),
                "url": uploaded.url,
                "path": f"users/{uid}/uploads",
                "createdAt": now_iso(),
            }
        )
        if audit:
            await self.audit.log_action(
                uid, "upload_file", uploaded.url, {"name": file_name, "url": uploaded.url}
            )
        logger.info(f"📤 {uid} uploaded {file_name} ({len(data)} bytes)")
        return {"url": uploaded.url, "fileId": uploaded.file_id}

    async def replace_image(self, uid: str, kind: str, data: bytes, file_name: str, mime_type: str) -> Dict[str, Any]:
        """Replace the single file in the profile or background folder and point the user at it."""
        folder_attr, user_field = IMAGE_SLOTS[kind]
        folders = await self.folders.get_structure(uid)
        folder_id = getattr(folders, folder_attr)

        await self.drive.clear_folder(folder_id)
        uploaded = await self.drive.upload_bytes(data, file_name, mime_type, folder_id)

        await self.db.users.update_one(
            {"uid": uid},
            {"$set": {user_field: uploaded.url, "updatedAt": now_iso()}},
            upsert=True,
        )
        return {"url": uploaded.url, "fileId": uploaded.file_id}

    async def delete_file(self, uid: str, file_id: str) -> None:
        """Delete one of the caller's uploads from Drive and from `uploads`."""
        record = await self.db.uploads.find_one({"fileId": file_id, "ownerUid": uid}, {"_id": 0})
        if not record:
            raise ApiError(404, "File not found")

        await self.drive.delete_file(file_id)
        await self.db.uploads.delete_many({"fileId": file_id, "ownerUid": uid})
        await self.audit.log_action(uid, "delete_file", file_id, {"reason": "user_deleted_file"})
