"""
AI chat routes.

Endpoints:
- POST /api/ai/study
- POST /api/ai/mentor
"""

import logging

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError
from ..models import ChatRequest, User

logger = logging.getLogger(__name__)


def create_chat_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/ai", tags=["chat"])

    @router.post("/study")
    async def study_chat(body: ChatRequest, user: User = Depends(ctx.auth.current_user)):
        """Study assistant turn; starts a session when no sessionId is given."""
        try:
            reply = await ctx.chat.study_turn(user.uid, body)
            return reply.to_doc()
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ Study chat error: {e}", exc_info=True)
            raise ApiError(500, "Chat failed")

    @router.post("/mentor")
    async def mentor_chat(body: ChatRequest, user: User = Depends(ctx.auth.current_user)):
        """Mentor turn."""
        try:
            reply = await ctx.chat.mentor_turn(user.uid, body)
            return reply.to_doc()
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ Mentor chat error: {e}", exc_info=True)
            raise ApiError(500, "Chat failed")

    return router
