from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, UnauthorizedError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services import store
from app.services.audit import AuditService

PENDING_APPROVAL = "Access pending approval. Please contact your manager."


async def find_by_username(db: AsyncSession, username: str) -> UserRecord | None:
    wanted = username.strip().lower()
    for user in await store.users.list(db):
        if user.username.lower() == wanted:
            return user
    return None


def _token_pair(user: UserRecord) -> dict:
    from app.config import get_settings
    settings = get_settings()

    return {
        "access_token": create_access_token(user.id, user.role.value),
        "refresh_token": create_refresh_token(user.id),
        "token_type": "bearer",
        "expires_in": settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


class AuthService:
    @staticmethod
    async def register(
        db: AsyncSession,
        username: str,
        password: str,
        name: str,
        manager_id: str | None = None,
    ) -> UserRecord:
        """Request an account. New accounts are regular users awaiting approval."""
        username = username.strip()
        name = name.strip()
        if not username or not name or not password.strip():
            raise BadRequestError("Required fields missing.")

        if await find_by_username(db, username):
            raise BadRequestError("Username is already active.")

        if manager_id and await store.users.get(db, manager_id) is None:
            raise BadRequestError("Selected manager does not exist")

        user = UserRecord(
            username=username,
            name=name,
            role=UserRole.USER,
            manager_id=manager_id or None,
            is_approved=False,
            password_hash=hash_password(password),
        )
        await store.users.upsert(db, user)
        await AuditService.record(
            db, user, "ACCESS_REQUEST", f"Account request: {user.username} ({user.name})"
        )
        return user

    @staticmethod
    async def login(db: AsyncSession, username: str, password: str) -> dict:
        """Authenticate user and return tokens."""
        user = await find_by_username(db, username)

        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Incorrect username or password.")

        if not user.is_approved:
            raise UnauthorizedError(PENDING_APPROVAL)

        await AuditService.record(db, user, "LOGIN", "User signed in")
        return _token_pair(user)

    @staticmethod
    async def refresh_token(db: AsyncSession, refresh_token: str) -> dict:
        """Refresh access token using refresh token."""
        try:
            payload = decode_token(refresh_token)
            if payload.get("type") != "refresh":
                raise UnauthorizedError("Invalid token type")
            user_id = str(payload["sub"])
        except (PyJWTError, KeyError):
            raise UnauthorizedError("Invalid or expired refresh token")

        user = await store.users.get(db, user_id)

        if user is None:
            raise UnauthorizedError("User not found")
        if not user.is_approved:
            raise UnauthorizedError(PENDING_APPROVAL)

        return _token_pair(user)
