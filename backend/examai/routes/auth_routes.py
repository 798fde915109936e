"""
Authentication and profile routes.

Endpoints:
- POST /api/auth/register
- POST /api/auth/login
- POST /api/auth/google
- POST /api/auth/logout
- GET /api/auth/me
- PUT /api/auth/update
- GET /api/auth/users
- GET /api/auth/users/{uid}
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response

from ..context import AppContext
from ..errors import ApiError
from ..models import GoogleLoginRequest, LoginRequest, ProfileUpdate, RegisterRequest, User
from ..services.identity.auth import SESSION_COOKIE
from ..utils import now_iso

logger = logging.getLogger(__name__)


def normalize_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    """Profile document with every field the frontend reads."""
    return {
        "uid": user.get("uid"),
        "fullName": user.get("fullName") or "",
        "email": user.get("email") or "",
        "phone": user.get("phone") or "",
        "description": user.get("description") or "",
        "location": user.get("location") or "",
        "photoURL": user.get("photoURL") or None,
        "backgroundURL": user.get("backgroundURL") or None,
        "achievements": user.get("achievements") if isinstance(user.get("achievements"), list) else [],
        "examCount": user.get("examCount") or 0,
        "accuracy": user.get("accuracy"),
        "preferredExam": user.get("preferredExam"),
        "preferredSubject": user.get("preferredSubject"),
        "createdAt": user.get("createdAt"),
        "updatedAt": user.get("updatedAt"),
    }


def create_auth_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/auth", tags=["auth"])
    auth = ctx.auth
    ttl_seconds = ctx.settings.SESSION_TTL_DAYS * 24 * 60 * 60

    def set_session_cookie(response: Response, session_token: str):
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session_token,
            httponly=True,
            secure=True,
            samesite="none",
            path="/",
            max_age=ttl_seconds,
        )

    @router.post("/register", status_code=201)
    async def register(body: RegisterRequest, response: Response):
        """Create an identity-provider user plus its profile document."""
        user_doc, token = await auth.register(body)
        set_session_cookie(response, token)
        return {
            "success": True,
            "message": "User registered successfully",
            "user": user_doc,
            "token": token,
        }

    @router.post("/login")
    async def login(body: LoginRequest, response: Response):
        user_doc, token = await auth.login(body.id_token)
        set_session_cookie(response, token)
        return {"success": True, "message": "Login successful", "user": user_doc, "token": token}

    @router.post("/google")
    async def google_login(body: GoogleLoginRequest, response: Response):
        user_doc, token, created = await auth.google_login(body.token)
        set_session_cookie(response, token)
        message = (
            "New Google user registered successfully."
            if created
            else "Welcome back! Google login successful."
        )
        return {"success": True, "message": message, "user": user_doc, "token": token}

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Logout and clear session"""
        await auth.revoke_session(auth.token_from_request(request))
        response.delete_cookie(key=SESSION_COOKIE, path="/")
        return {"success": True, "message": "Logged out"}

    @router.get("/me")
    async def get_me(user: User = Depends(auth.current_user)):
        user_doc = await ctx.db.users.find_one({"uid": user.uid}, {"_id": 0}) or {"uid": user.uid}
        profile = normalize_profile(user_doc)
        profile["role"] = user.role
        return {"success": True, "message": "Profile fetched successfully", "user": profile}

    @router.put("/update")
    async def update_profile(body: ProfileUpdate, user: User = Depends(auth.current_user)):
        """Merge the provided profile fields into the user document."""
        update = body.model_dump(by_alias=True, exclude_unset=True)
        # an empty photoURL never clears the current picture
        if not (update.get("photoURL") or "").strip():
            update.pop("photoURL", None)
        update["updatedAt"] = now_iso()

        try:
            await ctx.db.users.update_one({"uid": user.uid}, {"$set": update}, upsert=True)
        except Exception as e:
            logger.error(f"❌ Profile update failed for {user.uid}: {e}", exc_info=True)
            raise ApiError(500, "Failed to update profile")

        return {"success": True, "message": "Profile updated successfully", "updatedFields": update}

    @router.get("/users")
    async def list_users(user: User = Depends(auth.require_role("admin"))):
        cursor = ctx.db.users.find({}, {"_id": 0}).sort("createdAt", -1)
        users = await cursor.to_list(length=1000)
        return {"success": True, "count": len(users), "users": users}

    @router.get("/users/{uid}")
    async def get_user(uid: str, user: User = Depends(auth.current_user)):
        if uid != user.uid and user.role not in ("admin", "superadmin"):
            raise ApiError(403, "Forbidden: insufficient privileges")
        found = await ctx.db.users.find_one({"uid": uid}, {"_id": 0})
        if not found:
            raise ApiError(404, "User not found")
        return {"success": True, "user": found}

    return router
