from __future__ import annotations

from pydantic import BaseModel

from app.models.user import UserRole


class UserSummary(BaseModel):
    id: str
    username: str
    name: str
    role: UserRole
    manager_id: str | None = None

    model_config = {"from_attributes": True}


class HierarchyNode(BaseModel):
    user: UserSummary
    reports: list[HierarchyNode] = []


class HierarchyResponse(BaseModel):
    roots: list[HierarchyNode]
    floating: list[UserSummary]
    # Active users unreachable from any root (manager_id cycles)
    detached: list[UserSummary] = []


class TeamViewResponse(BaseModel):
    me: UserSummary
    manager: UserSummary | None = None
    peers: list[UserSummary] = []
