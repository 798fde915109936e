"""
Exam-AI Backend - Main FastAPI Application

AI practice questions, exam grading and study chat over MongoDB, Google Drive
and Gemini.
"""

import logging

from examai.app import create_app
from examai.config.settings import settings

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
