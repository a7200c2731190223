from typing import Literal

from pydantic import BaseModel, Field

from app.models.announcement import AnnouncementType
from app.models.user import new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class AnnouncementRecord(Record):
    id: str = Field(default_factory=new_id)
    title: str
    content: str
    author_id: str
    author_name: str
    is_important: bool = False
    type: AnnouncementType = AnnouncementType.GENERAL
    image_url: str | None = None
    text_color: str | None = None
    text_size: str | None = None
    timestamp: UtcDatetime = Field(default_factory=utc_now)


class AnnouncementCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=10000)
    is_important: bool = False
    type: AnnouncementType = AnnouncementType.GENERAL
    image_url: str | None = Field(default=None, max_length=500)
    text_color: str | None = Field(default=None, max_length=50)
    text_size: Literal["sm", "base", "lg"] | None = None


class AnnouncementListResponse(BaseModel):
    items: list[AnnouncementRecord]
    total: int
