"""
Exam routes.

Endpoints:
- POST /api/exams/submit
"""

import logging

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError
from ..models import ExamSubmission, User

logger = logging.getLogger(__name__)


def create_exam_routes(ctx: AppContext) -> APIRouter:
    """Create exam routes bound to the service context."""
    router = APIRouter(prefix="/api/exams", tags=["exams"])

    @router.post("/submit")
    async def submit_exam(submission: ExamSubmission, user: User = Depends(ctx.auth.current_user)):
        """Grade an attempt and archive its transcript."""
        try:
            return await ctx.attempts.submit(user.uid, submission)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ Exam submit error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Failed to submit")

    return router
