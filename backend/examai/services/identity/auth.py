"""
Sign-in flows and request authentication.

The identity provider proves who the caller is once; after that the backend
issues its own opaque session token (stored in `user_sessions`) which is sent
back as the `session_token` cookie or as a Bearer token.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from ...config.settings import Settings
from ...errors import ApiError, IdentityError
from ...models import RegisterRequest, User
from ...utils import now_iso
from ..folders import UserFolderService
from .firebase import FirebaseAuthProvider

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"
ROLES = ("user", "admin", "superadmin")


class AuthService:
    def __init__(
        self,
        settings: Settings,
        db: AsyncIOMotorDatabase,
        provider: FirebaseAuthProvider,
        folders: UserFolderService,
    ):
        self.settings = settings
        self.db = db
        self.provider = provider
        self.folders = folders

    # ============ SESSIONS ============

    async def issue_session(self, uid: str) -> str:
        session_token = f"session_{uuid.uuid4().hex}"
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.settings.SESSION_TTL_DAYS)
        await self.db.user_sessions.insert_one(
            {
                "user_id": uid,
                "session_token": session_token,
                "expires_at": expires_at.isoformat(),
                "created_at": now_iso(),
            }
        )
        return session_token

    async def revoke_session(self, session_token: Optional[str]) -> None:
        if session_token:
            await self.db.user_sessions.delete_one({"session_token": session_token})

    @staticmethod
    def token_from_request(request: Request) -> Optional[str]:
        session_token = request.cookies.get(SESSION_COOKIE)
        if not session_token:
            auth_header = request.headers.get("Authorization")
            if auth_header and auth_header.startswith("Bearer "):
                session_token = auth_header.split(" ")[1]
        return session_token

    def effective_role(self, uid: str, role: Optional[str]) -> str:
        if self.settings.SUPERADMIN_UID and uid == self.settings.SUPERADMIN_UID:
            return "superadmin"
        return role if role in ROLES else "user"

    async def current_user(self, request: Request) -> User:
        """FastAPI dependency: the user behind the request's session token."""
        session_token = self.token_from_request(request)
        if not session_token:
            raise HTTPException(status_code=401, detail="Not authenticated")

        session = await self.db.user_sessions.find_one({"session_token": session_token}, {"_id": 0})
        if not session:
            raise HTTPException(status_code=401, detail="Invalid session")

        expires_at = session.get("expires_at")
        if isinstance(expires_at, str):
            # JS toISOString() ends in "Z", which fromisoformat rejects before 3.11
            if expires_at.endswith("Z"):
                expires_at = expires_at[:-1] + "+00:00"
            expires_at = datetime.fromisoformat(expires_at)
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at < datetime.now(timezone.utc):
            raise HTTPException(status_code=401, detail="Session expired")

        user = await self.db.users.find_one({"uid": session["user_id"]}, {"_id": 0})
        if not user:
            raise HTTPException(status_code=401, detail="User not found")

        user = User(**user)
        user.role = self.effective_role(user.uid, user.role)
        return user

    def require_role(self, *allowed: str):
        """Dependency factory admitting only the given roles (superadmin always passes)."""

        async def dependency(request: Request) -> User:
            user = await self.current_user(request)
            if user.role != "superadmin" and user.role not in allowed:
                raise HTTPException(status_code=403, detail="Forbidden: insufficient privileges")
            return user

        return dependency

    # ============ SIGN-IN FLOWS ============

    async def register(self, data: RegisterRequest) -> Tuple[Dict[str, Any], str]:
        if len(data.password) < 6:
            raise ApiError(400, "Password must be at least 6 characters long.")

        try:
            record = await self.provider.create_user(data.email, data.password, data.full_name)
        except IdentityError as e:
            raise ApiError(400, f"Registration failed: {e}") from e

        uid = record["uid"]
        user_doc = {
            "uid": uid,
            "fullName": record.get("displayName") or data.full_name,
            "email": record.get("email") or data.email,
            "role": "user",
            "createdAt": now_iso(),
        }
        await self.db.users.update_one({"uid": uid}, {"$set": user_doc}, upsert=True)
        logger.info(f"🆕 Registered user {uid}")

        await self.folders.ensure_best_effort(uid)
        return user_doc, await self.issue_session(uid)

    async def login(self, id_token: str) -> Tuple[Dict[str, Any], str]:
        try:
            decoded = await self.provider.verify_id_token(id_token)
        except IdentityError as e:
            raise ApiError(401, "Invalid Firebase ID token") from e

        uid = decoded["uid"]
        user_doc = await self.db.users.find_one({"uid": uid}, {"_id": 0})
        if not user_doc:
            raise ApiError(404, "User not found.")

        if not user_doc.get("driveRootId"):
            await self.folders.ensure_best_effort(uid)
        return user_doc, await self.issue_session(uid)

    async def google_login(self, token: str) -> Tuple[Dict[str, Any], str, bool]:
        """Sign in with a Google-backed ID token, creating the user on first use."""
        try:
            decoded = await self.provider.verify_id_token(token)
        except IdentityError as e:
            raise ApiError(401, "Invalid or expired Google token") from e

        uid = decoded["uid"]
        email = decoded.get("email")
        if not email:
            raise ApiError(400, "Google account missing email.")

        user_doc = await self.db.users.find_one({"uid": uid}, {"_id": 0})
        created = user_doc is None
        if created:
            user_doc = {
                "uid": uid,
                "fullName": decoded.get("name") or "Google User",
                "email": email,
                "photoURL": decoded.get("picture") or "",
                "role": "user",
                "authProvider": "google",
                "createdAt": now_iso(),
            }
            await self.db.users.insert_one(dict(user_doc))
            logger.info(f"🆕 New Google user created: {email}")

        if not user_doc.get("driveRootId"):
            await self.folders.ensure_best_effort(uid)
        return user_doc, await self.issue_session(uid), created
