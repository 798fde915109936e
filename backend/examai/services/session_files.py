"""
Chat session files.

A session is a JSON document in Drive:

    {type, exam?, subject?, createdAt, updatedAt,
     messages: [{role, text, ts}, ...]}

The Drive file id is the session key. Reads are forgiving, appends are not:
appending to a file that cannot be fetched or parsed raises SessionFileError
and leaves the file untouched. Appends rewrite the whole document, so two
concurrent appends to one session can lose a message.
"""

import json
import logging
from typing import Any, Dict, Optional

from ..errors import DriveError, SessionFileError
from ..models import SessionMessage
from ..utils import now_iso, now_ms
from .drive import DriveService

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"


def _encode(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def _decode(raw: bytes) -> Optional[Dict[str, Any]]:
    """Parsed document, or None when the content is empty, malformed or not an object."""
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"⚠️ Session JSON parse failed: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


class SessionFileStore:
    """Create / read / append for JSON chat session files."""

    def __init__(self, drive: DriveService):
        self.drive = drive

    async def create(
        self,
        parent_id: str,
        file_name: str,
        session_type: str,
        seed_text: str,
        seed_role: str = "user",
        **meta: Any,
    ) -> str:
        """
        Write a new session holding a single seed message.

        Args:
            parent_id: Drive folder for the file
            file_name: Name of the JSON file
            session_type: "study" or "mentor"
            seed_text: First message of the conversation
            **meta: Extra top-level fields such as exam or subject (None values are dropped)

        Returns:
            The new file id (the session key)
        """
        created_at = now_iso()
        document: Dict[str, Any] = {"type": session_type}
        document.update({k: v for k, v in meta.items() if v is not None})
        document.update(
            {
                "createdAt": created_at,
                "updatedAt": created_at,
                "messages": [SessionMessage(role=seed_role, text=seed_text, ts=now_ms()).to_doc()],
            }
        )
        uploaded = await self.drive.upload_bytes(_encode(document), file_name, JSON_MIME, parent_id)
        logger.info(f"🗂️ Created {session_type} session file {uploaded.file_id}")
        return uploaded.file_id

    async def read_safe(self, file_id: str) -> Dict[str, Any]:
        """The session document, or {"messages": []} on any failure."""
        try:
            raw = await self.drive.download_bytes(file_id)
        except Exception as e:
            logger.error(f"❌ Reading session {file_id} failed: {e}")
            return {"messages": []}

        document = _decode(raw)
        if document is None:
            return {"messages": []}
        if not isinstance(document.get("messages"), list):
            document["messages"] = []
        return document

    async def append(self, file_id: str, role: str, text: str, ts: Optional[int] = None) -> Dict[str, Any]:
        """
        Add one message and write the whole document back.

        Raises:
            SessionFileError: the session is missing, unreadable, or the write failed
            ValidationError: role is not "user" or "assistant"
        """
        message = SessionMessage(role=role, text=text, ts=ts or now_ms())

        try:
            raw = await self.drive.download_bytes(file_id)
        except DriveError as e:
            raise SessionFileError(f"Session {file_id} could not be fetched") from e

        document = _decode(raw)
        if document is None:
            raise SessionFileError(f"Session {file_id} not found or not parseable")

        if not isinstance(document.get("messages"), list):
            document["messages"] = []
        document["messages"].append(message.to_doc())
        document["updatedAt"] = now_iso()

        try:
            await self.drive.update_bytes(file_id, _encode(document), JSON_MIME)
        except DriveError as e:
            raise SessionFileError(f"Session {file_id} could not be written") from e
        return document
