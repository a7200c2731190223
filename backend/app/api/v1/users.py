from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_admin, get_current_manager, get_current_user
from app.database import get_db
from app.schemas.hierarchy import HierarchyResponse, TeamViewResponse
from app.schemas.user import (
    ManagerAssignRequest,
    UserCreateRequest,
    UserListResponse,
    UserRecord,
    UserResponse,
    UserRoleUpdateRequest,
)
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """Directory: pending approvals first (managers only), then by name."""
    return await UserService.list_directory(db, current_user)


@router.get("/hierarchy", response_model=HierarchyResponse)
async def get_hierarchy(
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    """Full org tree, with unassigned and unreachable users listed apart."""
    return await UserService.hierarchy(db, current_user)


@router.get("/team", response_model=TeamViewResponse)
async def get_team(
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """The caller, their manager and their peers."""
    return await UserService.team(db, current_user)


@router.post("/", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await UserService.create_user(
        db,
        current_user,
        name=body.name,
        username=body.username,
        password=body.password,
        role=body.role,
        manager_id=body.manager_id,
    )


@router.post("/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await UserService.approve_user(db, current_user, user_id)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: str,
    body: UserRoleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_admin),
):
    return await UserService.change_role(db, current_user, user_id, body.role)


@router.patch("/{user_id}/manager", response_model=UserResponse)
async def assign_manager(
    user_id: str,
    body: ManagerAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await UserService.assign_manager(db, current_user, user_id, body.manager_id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    """Delete a user along with their reports, audit entries and notes."""
    await UserService.delete_user(db, current_user, user_id)
