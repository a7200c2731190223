from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.schemas.announcement import (
    AnnouncementCreateRequest,
    AnnouncementListResponse,
    AnnouncementRecord,
)
from app.schemas.user import UserRecord
from app.services import store
from app.services.audit import AuditService
from app.services.visibility import is_manager_tier


class AnnouncementService:
    @staticmethod
    async def list_announcements(db: AsyncSession) -> AnnouncementListResponse:
        """Important announcements first, then newest."""
        items = await store.announcements.list(db)
        items.sort(key=lambda a: a.timestamp, reverse=True)
        items.sort(key=lambda a: not a.is_important)
        return AnnouncementListResponse(items=items, total=len(items))

    @staticmethod
    async def create(
        db: AsyncSession, author: UserRecord, body: AnnouncementCreateRequest
    ) -> AnnouncementRecord:
        if not is_manager_tier(author):
            raise ForbiddenError("Only managers and admins can post announcements")

        announcement = AnnouncementRecord(
            author_id=author.id,
            author_name=author.name,
            **body.model_dump(),
        )
        await store.announcements.upsert(db, announcement)
        await AuditService.record(
            db, author, "CREATE_ANNOUNCEMENT", f"Posted announcement: {announcement.title}"
        )
        return announcement

    @staticmethod
    async def delete(db: AsyncSession, actor: UserRecord, announcement_id: str) -> None:
        if not is_manager_tier(actor):
            raise ForbiddenError("Only managers and admins can remove announcements")

        announcement = await store.announcements.get(db, announcement_id)
        if announcement is None:
            raise NotFoundError("Announcement not found")

        await store.announcements.delete(db, id=announcement_id)
        await AuditService.record(
            db, actor, "DELETE_ANNOUNCEMENT", f"Removed announcement: {announcement.title}"
        )
