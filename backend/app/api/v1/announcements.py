from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_manager, get_current_user
from app.database import get_db
from app.schemas.announcement import (
    AnnouncementCreateRequest,
    AnnouncementListResponse,
    AnnouncementRecord,
)
from app.schemas.user import UserRecord
from app.services.announcements import AnnouncementService

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("/", response_model=AnnouncementListResponse)
async def list_announcements(
    db: AsyncSession = Depends(get_db),
    _current_user: UserRecord = Depends(get_current_user),
):
    return await AnnouncementService.list_announcements(db)


@router.post("/", response_model=AnnouncementRecord, status_code=201)
async def create_announcement(
    body: AnnouncementCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await AnnouncementService.create(db, current_user, body)


@router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    await AnnouncementService.delete(db, current_user, announcement_id)
