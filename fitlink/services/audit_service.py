from datetime import datetime, timezone
import logging
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from fitlink.models.audit import AuditLog

logger = logging.getLogger(__name__)

class AuditService:
    @staticmethod
    async def log_action(
        db: AsyncSession,
        user_id: uuid.UUID | None,
        action: str,
        target_id: str | None = None,
        details: str | None = None
    ):
        """
        Record an audit event in the caller's transaction.

        The caller commits; a rolled back action leaves no audit row.
        """
        audit_entry = AuditLog(
            user_id=user_id,
            action=action,
            target_id=target_id,
            details=details,
            timestamp=datetime.now(timezone.utc)
        )
        db.add(audit_entry)
        logger.debug("Audit %s by %s on %s", action, user_id, target_id)
