"""
Exam attempt archiving.

Grades a submission, uploads a plain-text transcript to
users/<uid>/history/exam/ and records a pointer in `exam_history`. Storage
problems never cost the user their score: they come back as a warning.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..models import AttemptPointer, ExamSubmission, GradingResult, ScoreSummary
from ..utils import as_text, now_iso, now_ms
from .drive import DriveService
from .folders import UserFolderService
from .grading import score_attempt, summarize

logger = logging.getLogger(__name__)

UPLOAD_WARNING = "Drive upload failed - attempt not stored in Drive"


def render_transcript(
    submission: ExamSubmission,
    score: ScoreSummary,
    details: List[GradingResult],
    timestamp: str,
) -> str:
    lines = [
        f"Exam: {as_text(submission.exam)}",
        f"Subject: {as_text(submission.subject)}",
        f"Difficulty: {as_text(submission.difficulty)}",
        f"Timestamp: {timestamp}",
        f"Score: {score.obtained} / {score.total_marks} ({summarize(score)['percentage']}%)",
        "",
    ]
    for idx, result in enumerate(details, start=1):
        lines.append(f"{idx}. {result.question}")
        if result.user_answer is not None:
            lines.append(f"Your answer: {as_text(result.user_answer)}")
        lines.append(f"Correct answer: {result.correct_answer}")
        lines.append(f"Result: {'Correct' if result.is_correct else 'Wrong'}")
        if result.explanation:
            lines.append(f"Explanation: {result.explanation}")
        lines.append("")
    return "\n".join(lines)


def transcript_file_name(submission: ExamSubmission) -> str:
    return f"{submission.exam or 'exam'}_{submission.subject or 'subject'}_attempt_{now_ms()}.txt"


class AttemptArchiveService:
    """Scores exam submissions and archives them per user."""

    EXAM_FOLDER = "exam"

    def __init__(self, db: AsyncIOMotorDatabase, folders: UserFolderService, drive: DriveService):
        self.db = db
        self.folders = folders
        self.drive = drive

    async def submit(self, uid: str, submission: ExamSubmission) -> Dict[str, Any]:
        """
        Grade and archive one attempt.

        Returns:
            {ok, attemptId, score, details} plus `warning` when the transcript or
            its pointer could not be stored (attemptId is then None)
        """
        score, details = score_attempt(submission.questions, submission.answers)
        response: Dict[str, Any] = {
            "ok": True,
            "attemptId": None,
            "score": score.to_doc(),
            "details": [d.to_doc() for d in details],
        }

        try:
            response["attemptId"] = await self._archive(uid, submission, score, details)
        except Exception as e:
            logger.warning(f"⚠️ Failed to archive attempt for {uid}: {e}")
            response["warning"] = UPLOAD_WARNING

        return response

    async def _archive(
        self,
        uid: str,
        submission: ExamSubmission,
        score: ScoreSummary,
        details: List[GradingResult],
    ) -> str:
        transcript = render_transcript(submission, score, details, now_iso())
        file_name = transcript_file_name(submission)

        folder_id = await self.folders.history_subfolder(uid, self.EXAM_FOLDER)
        uploaded = await self.drive.upload_bytes(
            transcript.encode("utf-8"), file_name, "text/plain", folder_id
        )

        pointer = AttemptPointer(
            uid=uid,
            attempt_id=uuid.uuid4().hex,
            file_id=uploaded.file_id,
            file_url=uploaded.url,
            file_name=file_name,
            created_at=now_iso(),
            score=score,
        )
        await self.db.exam_history.insert_one(pointer.to_doc())
        logger.info(f"📝 Archived attempt {pointer.attempt_id} for {uid} ({score.obtained}/{score.total_marks})")
        return pointer.attempt_id

    async def list_attempts(self, uid: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Attempt pointers for a user, newest first."""
        cursor = self.db.exam_history.find({"uid": uid}, {"_id": 0}).sort("createdAt", -1)
        return await cursor.to_list(length=limit)

    async def get_attempt(self, uid: str, attempt_id: str) -> Optional[Dict[str, Any]]:
        return await self.db.exam_history.find_one(
            {"uid": uid, "attemptId": attempt_id}, {"_id": 0}
        )
