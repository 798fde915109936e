"""
Exam-AI FastAPI application factory.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .context import AppContext, build_context
from .errors import ApiError
from .routes import (
    create_auth_routes,
    create_chat_routes,
    create_exam_routes,
    create_gemini_routes,
    create_health_routes,
    create_history_routes,
    create_subjects_routes,
    create_superadmin_routes,
    create_upload_routes,
)

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin-allow-popups",
    "Cross-Origin-Embedder-Policy": "unsafe-none",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes for performance."""
    try:
        await db.users.create_index("uid", unique=True)
        await db.user_sessions.create_index("session_token", unique=True)
        await db.user_sessions.create_index("user_id")

        await db.exam_history.create_index([("uid", 1), ("createdAt", -1)])
        await db.exam_history.create_index("attemptId", unique=True)

        await db.study_sessions.create_index([("uid", 1), ("sessionId", 1)], unique=True)
        await db.study_sessions.create_index([("uid", 1), ("createdAt", -1)])
        await db.mentor_sessions.create_index([("uid", 1), ("sessionId", 1)], unique=True)
        await db.mentor_sessions.create_index([("uid", 1), ("createdAt", -1)])

        await db.uploads.create_index([("ownerUid", 1), ("fileId", 1)])
        await db.ai_sessions.create_index("sessionId", unique=True)
        await db.ai_session_messages.create_index("sessionId")
        await db.admin_actions.create_index("timestamp")
    except Exception as e:
        logger.warning(f"Index creation warning: {e}")


def create_app(ctx: Optional[AppContext] = None) -> FastAPI:
    """Build the application around a service context (production handles by default)."""
    ctx = ctx or build_context()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Exam-AI Backend Starting Up...")
        try:
            ctx.settings.validate()
            logger.info("✅ Settings validated")

            await ctx.db.command("ping")
            logger.info(f"✅ Connected to MongoDB: {ctx.settings.DATABASE_NAME}")

            await create_indexes(ctx.db)
            logger.info("✅ Database indexes created")
        except Exception as e:
            logger.error(f"❌ Startup failed: {e}")
            raise

        yield

        logger.info("🛑 Shutting down...")
        if ctx.client is not None:
            ctx.client.close()
            logger.info("✅ Database connection closed")

    app = FastAPI(
        title="Exam-AI API",
        description="Practice question generation, exam grading and AI study chat",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ctx.settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # ============ ERROR HANDLERS ============

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid request"))
        return JSONResponse(
            status_code=400,
            content={"ok": False, "message": message, "errors": jsonable_errors(errors)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"❌ Uncaught error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "message": "Internal Server Error", "error": str(exc)},
        )

    # ============ ROUTES ============

    app.include_router(create_health_routes(ctx))
    app.include_router(create_auth_routes(ctx))
    app.include_router(create_superadmin_routes(ctx))
    app.include_router(create_subjects_routes(ctx))
    app.include_router(create_gemini_routes(ctx))
    app.include_router(create_exam_routes(ctx))
    app.include_router(create_chat_routes(ctx))
    app.include_router(create_history_routes(ctx))
    app.include_router(create_upload_routes(ctx))
    logger.info("✅ Routes registered")

    return app


def jsonable_errors(errors):
    """Validation errors without the raw input and exception objects."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]
