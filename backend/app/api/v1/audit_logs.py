from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_manager
from app.database import get_db
from app.schemas.audit_log import AuditLogListResponse
from app.schemas.user import UserRecord
from app.services.audit import AuditService

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get("/", response_model=AuditLogListResponse)
async def list_audit_logs(
    search: str | None = Query(default=None, max_length=200),
    action: str | None = Query(default=None, max_length=50),
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    """Admins see every entry; managers only see regular users' actions."""
    return await AuditService.list_for_viewer(db, current_user, search=search, action=action)
