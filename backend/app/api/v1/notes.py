from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.schemas.note import (
    NoteCreateRequest,
    NoteListResponse,
    NoteRecord,
    NoteReorderRequest,
    NoteUpdateRequest,
)
from app.schemas.user import UserRecord
from app.services.notes import NoteService

router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    search: str | None = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """The caller's sticky notes in board order."""
    return await NoteService.list_notes(db, current_user, search=search)


@router.post("/", response_model=NoteRecord, status_code=201)
async def create_note(
    body: NoteCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    return await NoteService.create(
        db,
        current_user,
        title=body.title,
        content=body.content,
        color=body.color,
        font_size=body.font_size,
    )


@router.post("/reorder", response_model=NoteListResponse)
async def reorder_notes(
    body: NoteReorderRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """Move one note to a new position on the board."""
    return await NoteService.reorder(db, current_user, body.note_id, body.target_index)


@router.patch("/{note_id}", response_model=NoteRecord)
async def update_note(
    note_id: str,
    body: NoteUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    return await NoteService.update(db, current_user, note_id, body.model_dump())


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    await NoteService.delete(db, current_user, note_id)
