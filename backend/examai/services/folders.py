"""Per-user Drive folder layout."""

import logging
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..errors import DriveError
from ..models import UserFolders
from ..utils import now_iso
from .drive import DriveService

logger = logging.getLogger(__name__)

# users collection field -> UserFolders attribute
FOLDER_FIELDS: Dict[str, str] = {
    "driveMainFolder": "root",
    "driveUsersFolder": "users",
    "driveRootId": "user",
    "driveProfileFolder": "profile",
    "driveBackgroundFolder": "background",
    "driveUploadsFolder": "uploads",
    "driveHistoryFolder": "history",
    "driveMentorFolder": "mentor",
    "driveStudyFolder": "study",
    "driveAISessionsFolder": "ai_sessions",
}


class UserFolderService:
    """
    Provisions users/<uid>/{profile, background, uploads, history/{mentor, study},
    ai-sessions} under the configured root folder and remembers the ids on the
    user document.
    """

    def __init__(self, drive: DriveService, db: AsyncIOMotorDatabase, root_folder_id: str):
        self.drive = drive
        self.db = db
        self.root_folder_id = root_folder_id

    async def ensure_structure(self, uid: str) -> UserFolders:
        logger.info(f"🧩 Ensuring Drive folder structure for user: {uid}")

        try:
            await self.drive.get_metadata(self.root_folder_id, fields="id, name")
        except DriveError as e:
            logger.error(f"❌ Main folder inaccessible: {e}")
            raise DriveError("Drive root folder is not shared with the backend account") from e

        find = self.drive.find_or_create_folder
        users = await find(self.root_folder_id, "users")
        user = await find(users, uid)
        history = await find(user, "history")

        folders = UserFolders(
            root=self.root_folder_id,
            users=users,
            user=user,
            profile=await find(user, "profile"),
            background=await find(user, "background"),
            uploads=await find(user, "uploads"),
            history=history,
            mentor=await find(history, "mentor"),
            study=await find(history, "study"),
            ai_sessions=await find(user, "ai-sessions"),
        )

        update = {field: getattr(folders, attr) for field, attr in FOLDER_FIELDS.items()}
        update["updatedAt"] = now_iso()
        await self.db.users.update_one({"uid": uid}, {"$set": update}, upsert=True)
        return folders

    async def get_structure(self, uid: str) -> UserFolders:
        """Folder ids saved on the user document, provisioning them when any is missing."""
        user = await self.db.users.find_one({"uid": uid}, {"_id": 0}) or {}
        if all(user.get(field) for field in FOLDER_FIELDS):
            return UserFolders(**{attr: user[field] for field, attr in FOLDER_FIELDS.items()})
        return await self.ensure_structure(uid)

    async def ensure_best_effort(self, uid: str) -> Optional[UserFolders]:
        """Provision folders without failing the caller (used at sign-up and login)."""
        try:
            return await self.ensure_structure(uid)
        except Exception as e:
            logger.warning(f"⚠️ Drive folder creation failed for {uid}: {e}")
            return None

    async def history_subfolder(self, uid: str, name: str) -> str:
        """
        Resolve users/<uid>/history/<name>.

        Falls back to the history folder itself when the subfolder cannot be
        found or created.
        """
        folders = await self.get_structure(uid)
        try:
            return await self.drive.find_or_create_folder(folders.history, name)
        except DriveError as e:
            logger.warning(f"⚠️ Using history folder for '{name}': {e}")
            return folders.history
