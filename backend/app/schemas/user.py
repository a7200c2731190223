from datetime import datetime

from pydantic import BaseModel, Field

from app.models.user import UserRole, new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class UserRecord(Record):
    id: str = Field(default_factory=new_id)
    username: str
    name: str
    role: UserRole = UserRole.USER
    manager_id: str | None = None
    is_approved: bool = False
    password_hash: str = ""
    created_at: UtcDatetime = Field(default_factory=utc_now)


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    role: UserRole
    manager_id: str | None
    is_approved: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    pending: int


class UserCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)
    role: UserRole = UserRole.USER
    manager_id: str | None = None


class UserRoleUpdateRequest(BaseModel):
    role: UserRole


class ManagerAssignRequest(BaseModel):
    manager_id: str | None = None
