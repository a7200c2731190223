import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppError
from app.schemas.audit_log import AuditLogListResponse, AuditLogRecord
from app.schemas.user import UserRecord
from app.services import store
from app.services.visibility import filter_audit_logs, search_audit_logs

logger = logging.getLogger(__name__)


class AuditService:
    @staticmethod
    async def record(
        db: AsyncSession, actor: UserRecord, action: str, details: str = ""
    ) -> AuditLogRecord | None:
        """Append an audit entry. Failures are logged, never raised."""
        entry = AuditLogRecord(
            user_id=actor.id,
            user_name=actor.name,
            user_role=actor.role,
            action=action,
            details=details,
        )
        try:
            await store.audit_logs.upsert(db, entry)
        except AppError as e:
            logger.warning("Audit entry %s for %s was not stored: %s", action, actor.id, e.detail)
            return None
        return entry

    @staticmethod
    async def list_for_viewer(
        db: AsyncSession,
        viewer: UserRecord,
        search: str | None = None,
        action: str | None = None,
    ) -> AuditLogListResponse:
        """Newest entries the viewer's role may see, optionally searched."""
        # Raises for regular users before anything is fetched
        filter_audit_logs(viewer, [])

        visible = filter_audit_logs(viewer, await store.audit_logs.list(db))
        items = search_audit_logs(visible, term=search, action=action)
        return AuditLogListResponse(
            items=items,
            total=len(items),
            actions=sorted({log.action for log in visible}),
        )
