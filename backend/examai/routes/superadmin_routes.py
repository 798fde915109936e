"""
Superadmin routes.

Endpoints:
- POST /api/superadmin/create-admin
- POST /api/superadmin/revoke-admin/{uid}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError
from ..models import CreateAdminRequest, RevokeAdminRequest, User
from ..utils import now_iso

logger = logging.getLogger(__name__)


def create_superadmin_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/superadmin", tags=["superadmin"])
    require_superadmin = ctx.auth.require_role("superadmin")

    @router.post("/create-admin", status_code=201)
    async def create_admin(body: CreateAdminRequest, user: User = Depends(require_superadmin)):
        """Grant the admin role to an existing identity-provider account."""
        admin_doc = {
            "uid": body.uid,
            "email": body.email,
            "fullName": body.full_name,
            "role": "admin",
            "isActive": True,
            "createdAt": now_iso(),
        }
        try:
            await ctx.db.admins.update_one({"uid": body.uid}, {"$set": admin_doc}, upsert=True)
            await ctx.db.users.update_one(
                {"uid": body.uid},
                {
                    "$set": {
                        "uid": body.uid,
                        "email": body.email,
                        "fullName": body.full_name,
                        "role": "admin",
                        "isActive": True,
                        "updatedAt": now_iso(),
                    }
                },
                upsert=True,
            )
            await ctx.audit.log_action(
                user.uid, "create_admin", body.uid, {"email": body.email, "fullName": body.full_name}
            )
        except Exception as e:
            logger.error(f"❌ create-admin error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Failed to create admin")

        return {"success": True, "message": "Admin created", "admin": admin_doc}

    @router.post("/revoke-admin/{uid}")
    async def revoke_admin(
        uid: str,
        body: Optional[RevokeAdminRequest] = None,
        user: User = Depends(require_superadmin),
    ):
        """Soft revoke: role back to user and account marked inactive."""
        soft_delete = body.soft_delete if body else True
        target = await ctx.db.users.find_one({"uid": uid}, {"_id": 0})
        if not target:
            raise ApiError(404, "User not found")

        try:
            revoke = {"role": "user", "isActive": False, "updatedAt": now_iso()}
            await ctx.db.admins.update_one({"uid": uid}, {"$set": revoke})
            await ctx.db.users.update_one({"uid": uid}, {"$set": revoke})
            await ctx.audit.log_action(user.uid, "revoke_admin", uid, {"softDelete": soft_delete})
        except Exception as e:
            logger.error(f"❌ revoke-admin error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Failed to revoke admin")

        return {"success": True, "message": "Admin revoked (soft)", "uid": uid}

    return router
