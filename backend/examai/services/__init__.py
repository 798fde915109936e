from .attempts import AttemptArchiveService
from .audit import AuditLog
from .chat import ChatService
from .drive import DriveService
from .folders import UserFolderService
from .gemini import GeminiService
from .identity import AuthService, FirebaseAuthProvider
from .question_generation import QuestionGenerator
from .session_files import SessionFileStore
from .uploads import UploadService

__all__ = [
    "AttemptArchiveService",
    "AuditLog",
    "AuthService",
    "ChatService",
    "DriveService",
    "FirebaseAuthProvider",
    "GeminiService",
    "QuestionGenerator",
    "SessionFileStore",
    "UploadService",
    "UserFolderService",
]
