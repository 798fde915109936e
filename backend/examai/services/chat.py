"""
Study assistant and mentor chat.

Each conversation is a session file in the user's history/study or
history/mentor Drive folder, with a pointer document in `study_sessions` or
`mentor_sessions` that lists it in the user's history.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config.settings import Settings
from ..errors import ApiError
from ..models import ChatReply, ChatRequest, SessionPointer, normalize_options
from ..utils import as_text, limit_lines, now_iso, now_ms
from .folders import UserFolderService
from .gemini import GeminiService
from .session_files import SessionFileStore

logger = logging.getLogger(__name__)

POINTER_COLLECTIONS = {"study": "study_sessions", "mentor": "mentor_sessions"}
DEFAULT_TITLES = {"study": "Study Session", "mentor": "Mentor Session"}

_QUESTION_REF = re.compile(r"(?:q|question|solve|explain|answer)\s*\.?\s*(\d+)", re.IGNORECASE)


def detect_target_question(message: str, questions: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """Find the question a message refers to ("q3", "explain 2", ...), if any."""
    if not questions:
        return None
    match = _QUESTION_REF.search(message)
    if not match:
        return None
    number = int(match.group(1))

    found = next(
        (q for q in questions if isinstance(q, dict) and (q.get("number") == number or q.get("id") == f"q{number}")),
        None,
    )
    if found is None and 1 <= number <= len(questions) and isinstance(questions[number - 1], dict):
        found = questions[number - 1]
    return {**found, "number": number} if found is not None else None


def _history_lines(history: List[Dict[str, Any]], window: int) -> str:
    recent = history[-window:] if window else []
    return "\n".join(
        f"{'User' if msg.get('role') == 'user' else 'Assistant'}: {as_text(msg.get('text'))}"
        for msg in recent
        if isinstance(msg, dict)
    )


def build_study_prompt(
    message: str,
    exam: str,
    subject: str,
    target: Optional[Dict[str, Any]],
    history: List[Dict[str, Any]],
    window: int = 7,
    max_lines: int = 10,
) -> str:
    base = "\n".join(
        [
            f'You are a concise {exam} exam study assistant for subject "{subject}".',
            f"Reply in <= {max_lines} short lines.",
            "",
            "Recent Context:",
            _history_lines(history, window) or "(none)",
            "",
            f'User: "{message}"',
        ]
    )
    if not target:
        return f"{base}\n\nNo referenced question detected. Respond normally."

    options = normalize_options(target.get("options")) or {}
    correct = as_text(target.get("correctAnswer")) or as_text(target.get("answer"))
    lines = [
        base,
        "",
        f"Referenced Question {target['number']}:",
        as_text(target.get("question")),
        "",
    ]
    lines.extend(f"{letter}) {options.get(letter, '')}" for letter in "ABCD")
    lines.extend(["", f"Correct answer: {correct}", "", "Give a short, crisp explanation (2-4 sentences)."])
    return "\n".join(lines)


def build_mentor_prompt(message: str) -> str:
    return "\n".join(
        [
            "You are a friendly, casual mentor.",
            "",
            "Rules:",
            "• Keep messages short (<= 10 lines)",
            "• No long paragraphs",
            "• Match user's vibe",
            "• Never repeat user's message",
            "",
            f'User: "{message}"',
            "",
            "Reply naturally:",
        ]
    )


def _display_time(moment: datetime) -> str:
    return moment.strftime("%m/%d/%Y, %I:%M:%S %p")


class ChatService:
    """Runs chat turns against session files and keeps the pointer records."""

    def __init__(
        self,
        settings: Settings,
        db: AsyncIOMotorDatabase,
        folders: UserFolderService,
        sessions: SessionFileStore,
        gemini: GeminiService,
    ):
        self.settings = settings
        self.db = db
        self.folders = folders
        self.sessions = sessions
        self.gemini = gemini

    # ============ TURNS ============

    async def study_turn(self, uid: str, request: ChatRequest) -> ChatReply:
        user = await self.db.users.find_one({"uid": uid}, {"_id": 0}) or {}
        exam = user.get("preferredExam") or "GATE"
        subject = user.get("preferredSubject") or "General"
        target = detect_target_question(request.message, request.questions)
        window = self.settings.STUDY_HISTORY_WINDOW
        max_lines = self.settings.STUDY_REPLY_MAX_LINES

        def prompt(history: List[Dict[str, Any]]) -> str:
            return build_study_prompt(request.message, exam, subject, target, history, window, max_lines)

        return await self._turn(
            uid,
            "study",
            request.message,
            request.session_id,
            request.new_session,
            prompt,
            max_lines,
            title=f"Study - {subject}",
            meta={"exam": exam, "subject": subject},
        )

    async def mentor_turn(self, uid: str, request: ChatRequest) -> ChatReply:
        return await self._turn(
            uid,
            "mentor",
            request.message,
            request.session_id,
            False,
            lambda history: build_mentor_prompt(request.message),
            self.settings.MENTOR_REPLY_MAX_LINES,
            title="Mentor Session",
        )

    async def _turn(
        self,
        uid: str,
        kind: str,
        message: str,
        session_id: Optional[str],
        new_session: bool,
        build_prompt: Callable[[List[Dict[str, Any]]], str],
        max_lines: int,
        title: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> ChatReply:
        if new_session or not session_id:
            session_id, history = await self._start(uid, kind, message, title, meta or {})
        else:
            await self._require_pointer(uid, kind, session_id)
            document = await self.sessions.read_safe(session_id)
            history = document["messages"]
            await self.sessions.append(session_id, "user", message)

        raw = await self.gemini.generate(build_prompt(history), user_id=uid)
        reply = limit_lines(raw, max_lines)

        await self.sessions.append(session_id, "assistant", reply)
        return ChatReply(reply=reply, session_id=session_id)

    async def _start(self, uid: str, kind: str, message: str, title: str, meta: Dict[str, Any]):
        folders = await self.folders.get_structure(uid)
        parent = folders.study if kind == "study" else folders.mentor
        moment = datetime.now(timezone.utc)

        file_id = await self.sessions.create(
            parent, f"{kind}_session_{now_ms()}.json", kind, message, **meta
        )
        pointer = SessionPointer(
            uid=uid,
            session_id=file_id,
            file_id=file_id,
            file_name=f"{title} ({_display_time(moment)})",
            created_at=now_iso(),
            type=kind,
        )
        await self.db[POINTER_COLLECTIONS[kind]].insert_one(pointer.to_doc())
        logger.info(f"💬 New {kind} session {file_id} for {uid}")

        # the seed message doubles as the first line of history
        return file_id, [{"role": "user", "text": message}]

    # ============ HISTORY ============

    async def _require_pointer(self, uid: str, kind: str, session_id: str) -> Dict[str, Any]:
        pointer = await self.db[POINTER_COLLECTIONS[kind]].find_one(
            {"uid": uid, "sessionId": session_id}, {"_id": 0}
        )
        if not pointer:
            raise ApiError(404, "Session not found")
        return pointer

    async def list_sessions(self, uid: str, kind: str, limit: int = 200) -> List[Dict[str, Any]]:
        """Session pointers for the history sidebar, newest first."""
        cursor = self.db[POINTER_COLLECTIONS[kind]].find({"uid": uid}, {"_id": 0}).sort("createdAt", -1)
        docs = await cursor.to_list(length=limit)
        return [
            {
                "id": doc.get("sessionId"),
                "title": doc.get("fileName") or DEFAULT_TITLES[kind],
                "createdAt": doc.get("createdAt") or "",
            }
            for doc in docs
        ]

    async def load_session(self, uid: str, kind: str, session_id: str) -> Dict[str, Any]:
        await self._require_pointer(uid, kind, session_id)
        document = await self.sessions.read_safe(session_id)
        return {
            "id": session_id,
            "createdAt": document.get("createdAt", ""),
            "messages": document["messages"],
        }
