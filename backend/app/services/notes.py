import random

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.note import NoteColor, NoteFontSize
from app.schemas.note import NoteListResponse, NoteRecord
from app.schemas.user import UserRecord
from app.services import store


def ordered(notes: list[NoteRecord]) -> list[NoteRecord]:
    """Manual order first, newest first among equal indices."""
    by_newest = sorted(notes, key=lambda n: n.timestamp, reverse=True)
    return sorted(by_newest, key=lambda n: n.order_index)


def move(notes: list[NoteRecord], note_id: str, target_index: int) -> list[NoteRecord]:
    """Move one note to ``target_index`` and renumber the whole board."""
    current = ordered(notes)
    position = next((i for i, n in enumerate(current) if n.id == note_id), None)
    if position is None:
        raise NotFoundError("Note not found")

    moved = current.pop(position)
    current.insert(min(target_index, len(current)), moved)
    return [n.model_copy(update={"order_index": idx}) for idx, n in enumerate(current)]


class NoteService:
    @staticmethod
    async def list_notes(
        db: AsyncSession, owner: UserRecord, search: str | None = None
    ) -> NoteListResponse:
        notes = ordered(await store.notes.list(db, user_id=owner.id))
        needle = (search or "").strip().lower()
        if needle:
            notes = [
                n for n in notes if needle in n.title.lower() or needle in n.content.lower()
            ]
        return NoteListResponse(items=notes, total=len(notes))

    @staticmethod
    async def _owned(db: AsyncSession, owner: UserRecord, note_id: str) -> NoteRecord:
        note = await store.notes.get(db, note_id)
        if note is None:
            raise NotFoundError("Note not found")
        if note.user_id != owner.id:
            raise ForbiddenError("You can only modify your own notes")
        return note

    @staticmethod
    async def create(
        db: AsyncSession,
        owner: UserRecord,
        title: str = "",
        content: str = "",
        color: NoteColor | None = None,
        font_size: NoteFontSize = NoteFontSize.BASE,
    ) -> NoteRecord:
        """New notes go to the end of the board."""
        existing = await store.notes.list(db, user_id=owner.id)
        note = NoteRecord(
            user_id=owner.id,
            title=title,
            content=content,
            color=color or random.choice(list(NoteColor)),
            font_size=font_size,
            order_index=len(existing),
        )
        return await store.notes.upsert(db, note)

    @staticmethod
    async def update(
        db: AsyncSession, owner: UserRecord, note_id: str, changes: dict
    ) -> NoteRecord:
        note = await NoteService._owned(db, owner, note_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return note
        return await store.notes.upsert(db, note.model_copy(update=changes))

    @staticmethod
    async def delete(db: AsyncSession, owner: UserRecord, note_id: str) -> None:
        await NoteService._owned(db, owner, note_id)
        await store.notes.delete(db, id=note_id)

    @staticmethod
    async def reorder(
        db: AsyncSession, owner: UserRecord, note_id: str, target_index: int
    ) -> NoteListResponse:
        notes = await store.notes.list(db, user_id=owner.id)
        previous = {n.id: n.order_index for n in notes}

        renumbered = move(notes, note_id, target_index)
        for note in renumbered:
            if previous.get(note.id) != note.order_index:
                await store.notes.upsert(db, note)
        return NoteListResponse(items=renumbered, total=len(renumbered))
