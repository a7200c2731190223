from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import decode_token
from app.database import get_db
from app.models.user import UserRole
from app.schemas.user import UserRecord
from app.services import store
from app.services.ai_assistant import AiAssistant, ai_assistant
from app.services.visibility import is_manager_tier

security_scheme = HTTPBearer()


async def user_from_token(db: AsyncSession, token: str) -> UserRecord:
    """Resolve an access token to an approved user."""
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = str(payload["sub"])
    except (PyJWTError, KeyError):
        raise UnauthorizedError("Invalid or expired token")

    user = await store.users.get(db, user_id)

    if user is None:
        raise UnauthorizedError("User not found")
    if not user.is_approved:
        raise UnauthorizedError("User account is pending approval")

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserRecord:
    """Extract and validate the current user from JWT token."""
    return await user_from_token(db, credentials.credentials)


async def get_current_manager(
    current_user: UserRecord = Depends(get_current_user),
) -> UserRecord:
    """Require manager or admin role."""
    if not is_manager_tier(current_user):
        raise ForbiddenError("Manager access required")
    return current_user


async def get_current_admin(
    current_user: UserRecord = Depends(get_current_user),
) -> UserRecord:
    """Require admin role."""
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")
    return current_user


def get_ai_assistant() -> AiAssistant:
    return ai_assistant
