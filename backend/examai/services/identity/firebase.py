"""Firebase Authentication as the identity provider."""

import asyncio
import logging
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials

from ...errors import IdentityError

logger = logging.getLogger(__name__)


class FirebaseAuthProvider:
    """Verifies Firebase ID tokens and creates password users."""

    def __init__(self, credentials_path: str):
        self.credentials_path = credentials_path
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            if not firebase_admin._apps:
                logger.info("🔌 Initializing Firebase...")
                cred = credentials.Certificate(self.credentials_path)
                self._app = firebase_admin.initialize_app(cred)
                logger.info("✅ Firebase initialized successfully")
            else:
                self._app = firebase_admin.get_app()
        return self._app

    async def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """Decoded token claims (uid, email, name, picture, ...)."""
        try:
            return await asyncio.to_thread(auth.verify_id_token, id_token, self._get_app())
        except Exception as e:
            logger.error(f"❌ ID token verification failed: {e}")
            raise IdentityError(str(e)) from e

    async def create_user(self, email: str, password: str, display_name: str) -> Dict[str, Any]:
        try:
            record = await asyncio.to_thread(
                auth.create_user,
                email=email,
                password=password,
                display_name=display_name,
                app=self._get_app(),
            )
        except Exception as e:
            logger.error(f"❌ Firebase user creation failed for {email}: {e}")
            raise IdentityError(str(e)) from e
        return {"uid": record.uid, "email": record.email, "displayName": record.display_name}
