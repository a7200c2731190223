from pydantic import BaseModel, Field

from app.models.note import NoteColor, NoteFontSize
from app.models.user import new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class NoteRecord(Record):
    id: str = Field(default_factory=new_id)
    user_id: str
    title: str = ""
    content: str = ""
    color: NoteColor = NoteColor.YELLOW
    font_size: NoteFontSize = NoteFontSize.BASE
    order_index: int = 0
    timestamp: UtcDatetime = Field(default_factory=utc_now)


class NoteCreateRequest(BaseModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(default="", max_length=10000)
    color: NoteColor | None = None
    font_size: NoteFontSize = NoteFontSize.BASE


class NoteUpdateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=10000)
    color: NoteColor | None = None
    font_size: NoteFontSize | None = None


class NoteReorderRequest(BaseModel):
    note_id: str
    target_index: int = Field(ge=0)


class NoteListResponse(BaseModel):
    items: list[NoteRecord]
    total: int
