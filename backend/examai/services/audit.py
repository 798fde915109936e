"""Append-only audit trail in `admin_actions`."""

import logging
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..utils import now_iso

logger = logging.getLogger(__name__)

MASKED_ACTOR = "SYSTEM_ROOT"


class AuditLog:
    def __init__(self, db: AsyncIOMotorDatabase, superadmin_uid: str = ""):
        self.db = db
        self.superadmin_uid = superadmin_uid

    async def log_action(
        self,
        actor_uid: str,
        action: str,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        # the superadmin uid never appears in the trail
        masked = MASKED_ACTOR if self.superadmin_uid and actor_uid == self.superadmin_uid else actor_uid
        entry = {
            "actorUid": masked,
            "action": action,
            "target": target,
            "details": details or {},
            "timestamp": now_iso(),
        }
        await self.db.admin_actions.insert_one(dict(entry))
        logger.info(f"🧾 {action} by {masked} on {target}")
        return entry
