"""
Gemini routes.

Endpoints:
- POST /api/gemini/generate
- POST /api/gemini/chat
"""

import logging

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError, GeminiError
from ..models import GeminiChatRequest, GenerateQuestionsRequest, User

logger = logging.getLogger(__name__)


def create_gemini_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/gemini", tags=["gemini"])

    @router.post("/generate")
    async def generate_questions(body: GenerateQuestionsRequest, user: User = Depends(ctx.auth.current_user)):
        """Generate practice questions for an exam and subject."""
        exam = (body.exam or user.preferred_exam or "GATE").strip()
        subject = body.subject.strip()
        if not subject:
            raise ApiError(400, "subject required")

        try:
            result = await ctx.questions.generate(
                exam, subject, body.difficulty, body.num_questions, user_id=user.uid
            )
        except GeminiError as e:
            raise ApiError(502, str(e))
        except Exception as e:
            logger.error(f"❌ POST /api/gemini/generate error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Failed to generate")

        if not result.ok:
            raise ApiError(502, result.reason or "AI returned invalid response")
        return {"ok": True, "data": [q.to_doc() for q in result.questions]}

    @router.post("/chat")
    async def chat(body: GeminiChatRequest, user: User = Depends(ctx.auth.current_user)):
        """Free-form prompt, logged under the given session id."""
        try:
            text = await ctx.gemini.generate(
                body.prompt, model=body.model, session_id=body.session_id, user_id=user.uid
            )
        except GeminiError as e:
            raise ApiError(502, str(e))
        return {"ok": True, "text": text, "sessionId": body.session_id}

    return router
