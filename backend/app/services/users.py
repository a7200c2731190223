import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.security import hash_password
from app.models.user import UserRole
from app.schemas.hierarchy import HierarchyResponse, TeamViewResponse
from app.schemas.user import UserListResponse, UserRecord, UserResponse
from app.services import hierarchy, store
from app.services.audit import AuditService
from app.services.auth import find_by_username
from app.services.visibility import is_manager_tier

logger = logging.getLogger(__name__)


def can_manage(actor: UserRecord, target: UserRecord) -> bool:
    """Admins manage everyone but other admins; managers manage regular users."""
    if actor.id == target.id:
        return False
    if actor.role == UserRole.ADMIN:
        return target.role != UserRole.ADMIN
    if actor.role == UserRole.MANAGER:
        return target.role == UserRole.USER
    return False


def name_map(users: list[UserRecord]) -> dict[str, str]:
    return {u.id: u.name for u in users}


class UserService:
    @staticmethod
    async def get(db: AsyncSession, user_id: str) -> UserRecord:
        user = await store.users.get(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def _managed(db: AsyncSession, actor: UserRecord, user_id: str) -> UserRecord:
        target = await UserService.get(db, user_id)
        if not can_manage(actor, target):
            raise ForbiddenError("You are not allowed to manage this user")
        return target

    @staticmethod
    async def list_directory(db: AsyncSession, viewer: UserRecord) -> UserListResponse:
        """Pending approvals first, then everyone by name."""
        users = await store.users.list(db)
        if not is_manager_tier(viewer):
            users = [u for u in users if u.is_approved]
        users.sort(key=lambda u: (u.is_approved, u.name.lower()))
        return UserListResponse(
            items=[UserResponse.model_validate(u) for u in users],
            total=len(users),
            pending=sum(1 for u in users if not u.is_approved),
        )

    @staticmethod
    async def create_user(
        db: AsyncSession,
        actor: UserRecord,
        name: str,
        username: str,
        password: str,
        role: UserRole = UserRole.USER,
        manager_id: str | None = None,
    ) -> UserRecord:
        """Create an account on someone's behalf. It is approved right away."""
        if not is_manager_tier(actor):
            raise ForbiddenError("Only managers and admins can create users")
        if actor.role == UserRole.MANAGER and role != UserRole.USER:
            raise ForbiddenError("Managers can only create regular users")

        username = username.strip()
        name = name.strip()
        if not username or not name:
            raise BadRequestError("Required fields missing.")
        if await find_by_username(db, username):
            raise BadRequestError("Username is already active.")

        user = UserRecord(
            username=username,
            name=name,
            role=role,
            manager_id=manager_id or None,
            is_approved=True,
            password_hash=hash_password(password),
        )
        await store.users.upsert(db, user)
        await AuditService.record(
            db, actor, "CREATE_USER", f"Created new user: {user.name} with role {user.role.value}"
        )
        return user

    @staticmethod
    async def approve_user(db: AsyncSession, actor: UserRecord, user_id: str) -> UserRecord:
        target = await UserService._managed(db, actor, user_id)
        if target.is_approved:
            return target

        user = target.model_copy(update={"is_approved": True})
        await store.users.upsert(db, user)
        await AuditService.record(db, actor, "APPROVE_USER", f"Approved access for user: {user.name}")
        return user

    @staticmethod
    async def change_role(
        db: AsyncSession, actor: UserRecord, user_id: str, role: UserRole
    ) -> UserRecord:
        if actor.role != UserRole.ADMIN:
            raise ForbiddenError("Admin access required")
        target = await UserService._managed(db, actor, user_id)
        if target.role == role:
            return target

        user = target.model_copy(update={"role": role})
        await store.users.upsert(db, user)
        await AuditService.record(
            db, actor, "UPDATE_ROLE", f"Changed role for {user.name} to {role.value}"
        )
        return user

    @staticmethod
    async def assign_manager(
        db: AsyncSession, actor: UserRecord, user_id: str, manager_id: str | None
    ) -> UserRecord:
        target = await UserService._managed(db, actor, user_id)
        manager_id = manager_id or None

        manager_name = "nobody"
        if manager_id is not None:
            if manager_id == target.id:
                raise BadRequestError("A user cannot be their own manager")
            manager = await UserService.get(db, manager_id)
            manager_name = manager.name

        user = target.model_copy(update={"manager_id": manager_id})
        await store.users.upsert(db, user)
        await AuditService.record(
            db, actor, "ASSIGN_MANAGER", f"Assigned {user.name} to {manager_name}"
        )
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, actor: UserRecord, user_id: str) -> None:
        """
        Delete a user and everything they own.

        Each step is its own store call; a failure part-way leaves orphans
        rather than undoing the earlier deletes.
        """
        target = await UserService._managed(db, actor, user_id)

        await store.feedbacks.delete(db, from_user_id=target.id)
        await store.feedbacks.delete(db, to_user_id=target.id)
        await store.audit_logs.delete(db, user_id=target.id)
        await store.notes.delete(db, user_id=target.id)
        await store.users.delete(db, id=target.id)

        await AuditService.record(
            db, actor, "DELETE_USER", f"Deleted user: {target.name} ({target.username})"
        )

    @staticmethod
    async def hierarchy(db: AsyncSession, viewer: UserRecord) -> HierarchyResponse:
        if not is_manager_tier(viewer):
            raise ForbiddenError("The org tree is restricted to managers and admins")
        users = sorted(await store.users.list(db), key=lambda u: u.name.lower())
        return hierarchy.build_hierarchy(users)

    @staticmethod
    async def team(db: AsyncSession, viewer: UserRecord) -> TeamViewResponse:
        users = sorted(await store.users.list(db), key=lambda u: u.name.lower())
        return hierarchy.team_view(viewer, users)

    @staticmethod
    async def seed_admin(db: AsyncSession) -> UserRecord | None:
        """Create the bootstrap admin when nobody exists yet."""
        if await store.users.list(db):
            return None

        settings = get_settings()
        admin = UserRecord(
            username=settings.SEED_ADMIN_USERNAME,
            name=settings.SEED_ADMIN_NAME,
            role=UserRole.ADMIN,
            is_approved=True,
            password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
        )
        await store.users.upsert(db, admin)
        logger.info("Seeded initial admin account: %s", admin.username)
        return admin
