"""
Google Gemini text generation.

Replies are logged to `ai_sessions` (latest prompt/response per session) and
`ai_session_messages`; logging failures never affect the reply.
"""

import asyncio
import logging
import uuid
from typing import Any, Optional

import google.generativeai as genai
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config.settings import Settings
from ..errors import GeminiError
from ..utils import now_iso

logger = logging.getLogger(__name__)


class GeminiService:
    """Single-prompt Gemini calls with a hard timeout."""

    def __init__(self, settings: Settings, db: Optional[AsyncIOMotorDatabase] = None):
        self.settings = settings
        self.db = db
        self._configured = False

    def _configure(self):
        if not self._configured:
            if not self.settings.GEMINI_API_KEY:
                logger.warning("⚠️ GEMINI_API_KEY not set - Gemini calls will fail")
            genai.configure(api_key=self.settings.GEMINI_API_KEY)
            self._configured = True

    def _call(self, prompt: str, model_name: str) -> str:
        self._configure()
        model = genai.GenerativeModel(
            model_name=model_name,
            generation_config=genai.GenerationConfig(temperature=self.settings.LLM_TEMPERATURE),
        )
        response = model.generate_content(prompt)
        return response.text or ""

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> str:
        """
        Generate a reply for a single prompt.

        Raises:
            GeminiError: the SDK call failed or exceeded LLM_TIMEOUT
        """
        model_name = model or self.settings.GEMINI_MODEL
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._call, prompt, model_name),
                timeout=self.settings.LLM_TIMEOUT,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Gemini timed out after {self.settings.LLM_TIMEOUT}s")
            raise GeminiError("Gemini request failed: timed out") from e
        except Exception as e:
            logger.error(f"❌ Gemini error: {e}")
            raise GeminiError(f"Gemini request failed: {e}") from e

        await self._log_session(session_id, model_name, prompt, text, user_id)
        return text

    async def _log_session(
        self,
        session_id: Optional[str],
        model_name: str,
        prompt: str,
        text: str,
        user_id: Optional[str],
    ) -> Any:
        if self.db is None:
            return None
        session_id = session_id or uuid.uuid4().hex
        try:
            await self.db.ai_sessions.update_one(
                {"sessionId": session_id},
                {
                    "$set": {
                        "sessionId": session_id,
                        "model": model_name,
                        "lastPrompt": prompt,
                        "lastResponse": text,
                        "updatedAt": now_iso(),
                        "userUid": user_id,
                    }
                },
                upsert=True,
            )
            await self.db.ai_session_messages.insert_one(
                {"sessionId": session_id, "role": "assistant", "text": text, "createdAt": now_iso()}
            )
        except Exception as e:
            logger.warning(f"⚠️ Failed to persist Gemini session: {e}")
        return session_id
