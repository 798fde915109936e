"""
Configuration settings for the Exam-AI backend.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env")


class Settings:
    """Application settings loaded from environment."""

    # Database
    MONGODB_URL: str = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.environ.get("DB_NAME", "examai")

    # Gemini
    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    LLM_TIMEOUT: int = 120  # seconds
    LLM_TEMPERATURE: float = float(os.environ.get("LLM_TEMPERATURE", "0.7"))

    # Firebase (identity provider)
    FIREBASE_CREDENTIALS: str = os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS", "serviceAccountKey.json"
    )

    # Google Drive
    DRIVE_ROOT_FOLDER_ID: str = os.environ.get("DRIVE_ROOT_FOLDER_ID", "")
    DRIVE_TOKEN_FILE: str = os.environ.get("DRIVE_TOKEN_FILE", "token.json")
    DRIVE_SERVICE_ACCOUNT_FILE: str = os.environ.get("DRIVE_SERVICE_ACCOUNT_FILE", "")
    DRIVE_SCOPES: List[str] = ["https://www.googleapis.com/auth/drive.file"]

    # Auth
    SESSION_TTL_DAYS: int = int(os.environ.get("SESSION_TTL_DAYS", 7))
    SUPERADMIN_UID: str = os.environ.get("SUPERADMIN_UID", "")

    # Server
    PORT: int = int(os.environ.get("PORT", 5000))
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    DEBUG: bool = os.environ.get("DEBUG", "False").lower() == "true"
    CORS_ORIGINS: List[str] = os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")

    # Limits
    MAX_UPLOAD_MB: int = 25
    MAX_GENERATED_QUESTIONS: int = 50
    STUDY_REPLY_MAX_LINES: int = 10
    MENTOR_REPLY_MAX_LINES: int = 20
    STUDY_HISTORY_WINDOW: int = 7  # messages fed back into the study prompt

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self):
        """Validate critical settings."""
        if not self.MONGODB_URL:
            raise ValueError("MONGODB_URI environment variable not set")
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable not set")
        if not self.DRIVE_ROOT_FOLDER_ID:
            raise ValueError("DRIVE_ROOT_FOLDER_ID environment variable not set")
        return True


# Global settings instance
settings = Settings()
