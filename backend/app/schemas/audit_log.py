from pydantic import BaseModel, Field

from app.models.user import UserRole, new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class AuditLogRecord(Record):
    id: str = Field(default_factory=new_id)
    user_id: str
    user_name: str
    user_role: UserRole
    action: str
    details: str = ""
    timestamp: UtcDatetime = Field(default_factory=utc_now)


class AuditLogListResponse(BaseModel):
    items: list[AuditLogRecord]
    total: int
    actions: list[str]
