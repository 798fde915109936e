"""
Upload routes (multipart, field name `file`).

Endpoints:
- POST /api/upload/file
- POST /api/upload/material
- POST /api/upload/profile
- POST /api/upload/background
- DELETE /api/upload/file/{file_id}
"""

import logging
from typing import Tuple

from fastapi import APIRouter, Depends, File, UploadFile

from ..context import AppContext
from ..errors import ApiError
from ..models import User
from ..utils import validate_file_size

logger = logging.getLogger(__name__)


def create_upload_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/upload", tags=["upload"])
    current_user = ctx.auth.current_user
    uploads = ctx.uploads

    async def read_upload(file: UploadFile) -> Tuple[bytes, str, str]:
        file_bytes = await file.read()
        if not file_bytes:
            raise ApiError(400, "No file uploaded")
        is_valid, msg = validate_file_size(file_bytes, ctx.settings.MAX_UPLOAD_MB)
        if not is_valid:
            raise ApiError(400, msg)
        return file_bytes, file.filename or "upload", file.content_type or "application/octet-stream"

    @router.post("/file")
    async def upload_file(file: UploadFile = File(...), user: User = Depends(current_user)):
        """Upload a file into the user's uploads folder."""
        file_bytes, name, mime_type = await read_upload(file)
        try:
            result = await uploads.upload_material(user.uid, file_bytes, name, mime_type)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ Upload error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Upload failed")
        return {"success": True, "message": "✅ File uploaded successfully to Drive", **result}

    @router.post("/material")
    async def upload_material(file: UploadFile = File(...), user: User = Depends(current_user)):
        """Study material upload; same storage as /file without an audit entry."""
        file_bytes, name, mime_type = await read_upload(file)
        try:
            result = await uploads.upload_material(user.uid, file_bytes, name, mime_type, audit=False)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ Material upload error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Upload failed")
        return {"ok": True, "message": "Uploaded successfully", **result}

    async def replace_image(kind: str, file: UploadFile, user: User):
        file_bytes, name, mime_type = await read_upload(file)
        try:
            result = await uploads.replace_image(user.uid, kind, file_bytes, name, mime_type)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ {kind} upload error: {e}", exc_info=True)
            raise ApiError(500, str(e) or f"{kind.capitalize()} upload failed")
        return {"success": True, "message": f"{kind.capitalize()} uploaded", **result}

    @router.post("/profile")
    async def upload_profile(file: UploadFile = File(...), user: User = Depends(current_user)):
        return await replace_image("profile", file, user)

    @router.post("/background")
    async def upload_background(file: UploadFile = File(...), user: User = Depends(current_user)):
        return await replace_image("background", file, user)

    @router.delete("/file/{file_id}")
    async def delete_file(file_id: str, user: User = Depends(current_user)):
        try:
            await uploads.delete_file(user.uid, file_id)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"❌ File delete error: {e}", exc_info=True)
            raise ApiError(500, str(e) or "Failed to delete file")
        return {"success": True, "message": "File deleted", "fileId": file_id}

    return router
