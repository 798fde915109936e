"""Service handles shared by the routers."""

from dataclasses import dataclass
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .config.settings import Settings, settings as default_settings
from .services import (
    AttemptArchiveService,
    AuditLog,
    AuthService,
    ChatService,
    DriveService,
    FirebaseAuthProvider,
    GeminiService,
    QuestionGenerator,
    SessionFileStore,
    UploadService,
    UserFolderService,
)


@dataclass
class AppContext:
    settings: Settings
    db: AsyncIOMotorDatabase
    drive: DriveService
    folders: UserFolderService
    sessions: SessionFileStore
    gemini: GeminiService
    questions: QuestionGenerator
    attempts: AttemptArchiveService
    chat: ChatService
    auth: AuthService
    audit: AuditLog
    uploads: UploadService
    client: Optional[AsyncIOMotorClient] = None


def assemble_context(
    settings: Settings,
    db: AsyncIOMotorDatabase,
    drive: DriveService,
    gemini: GeminiService,
    identity: FirebaseAuthProvider,
    client: Optional[AsyncIOMotorClient] = None,
) -> AppContext:
    """Wire the services around the given external handles."""
    folders = UserFolderService(drive, db, settings.DRIVE_ROOT_FOLDER_ID)
    sessions = SessionFileStore(drive)
    audit = AuditLog(db, settings.SUPERADMIN_UID)
    return AppContext(
        settings=settings,
        db=db,
        drive=drive,
        folders=folders,
        sessions=sessions,
        gemini=gemini,
        questions=QuestionGenerator(gemini, settings.MAX_GENERATED_QUESTIONS),
        attempts=AttemptArchiveService(db, folders, drive),
        chat=ChatService(settings, db, folders, sessions, gemini),
        auth=AuthService(settings, db, identity, folders),
        audit=audit,
        uploads=UploadService(db, drive, folders, audit),
        client=client,
    )


def build_context(settings: Optional[Settings] = None) -> AppContext:
    """Production handles: MongoDB, Drive, Gemini and Firebase."""
    settings = settings or default_settings
    client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        maxPoolSize=50,
        serverSelectionTimeoutMS=5000,
    )
    db = client[settings.DATABASE_NAME]
    return assemble_context(
        settings,
        db,
        DriveService(settings),
        GeminiService(settings, db),
        FirebaseAuthProvider(settings.FIREBASE_CREDENTIALS),
        client=client,
    )
