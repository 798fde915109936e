"""Liveness and dependency checks."""

import logging

from fastapi import APIRouter

from .. import __version__
from ..context import AppContext
from ..errors import ApiError

logger = logging.getLogger(__name__)


def create_health_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health")
    async def health():
        return {"ok": True, "message": "✅ Exam-AI backend is running"}

    @router.get("/api/health")
    async def health_check():
        """Health check including the database connection."""
        try:
            await ctx.db.command("ping")
            database = "connected"
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            database = "disconnected"
        return {"status": "healthy", "version": __version__, "database": database}

    @router.get("/api/health/drive")
    async def drive_check():
        """List the first entries of the Drive root folder."""
        try:
            files = await ctx.drive.check_connection()
        except Exception as e:
            logger.error(f"❌ Drive connection check failed: {e}")
            raise ApiError(503, f"Drive unreachable: {e}")
        return {"ok": True, "files": files}

    return router
