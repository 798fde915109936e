"""
History routes.

Endpoints:
- GET /api/history/mentor
- GET /api/history/subject
- GET /api/history/exam
- GET /api/history/exam/{attempt_id}
- GET /api/history/mentor/session/{session_id}
- GET /api/history/subject/session/{session_id}
"""

import logging

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError
from ..models import User

logger = logging.getLogger(__name__)


def create_history_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/history", tags=["history"])
    current_user = ctx.auth.current_user

    async def list_sessions(uid: str, kind: str):
        try:
            return {"ok": True, "sessions": await ctx.chat.list_sessions(uid, kind)}
        except Exception as e:
            logger.error(f"❌ {kind} history error: {e}", exc_info=True)
            raise ApiError(500, "Failed to load history")

    async def load_session(uid: str, kind: str, session_id: str):
        try:
            return {"ok": True, "session": await ctx.chat.load_session(uid, kind, session_id)}
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ {kind} session load error: {e}", exc_info=True)
            raise ApiError(500, "Failed to load session")

    @router.get("/mentor")
    async def mentor_history(user: User = Depends(current_user)):
        return await list_sessions(user.uid, "mentor")

    @router.get("/subject")
    async def subject_history(user: User = Depends(current_user)):
        return await list_sessions(user.uid, "study")

    @router.get("/exam")
    async def exam_history(user: User = Depends(current_user)):
        """Archived exam attempts, newest first."""
        try:
            return {"ok": True, "attempts": await ctx.attempts.list_attempts(user.uid)}
        except Exception as e:
            logger.error(f"❌ exam history error: {e}", exc_info=True)
            raise ApiError(500, "Failed to load history")

    @router.get("/exam/{attempt_id}")
    async def exam_attempt(attempt_id: str, user: User = Depends(current_user)):
        attempt = await ctx.attempts.get_attempt(user.uid, attempt_id)
        if not attempt:
            raise ApiError(404, "Attempt not found")
        return {"ok": True, "attempt": attempt}

    @router.get("/mentor/session/{session_id}")
    async def mentor_session(session_id: str, user: User = Depends(current_user)):
        return await load_session(user.uid, "mentor", session_id)

    @router.get("/subject/session/{session_id}")
    async def subject_session(session_id: str, user: User = Depends(current_user)):
        return await load_session(user.uid, "study", session_id)

    return router
