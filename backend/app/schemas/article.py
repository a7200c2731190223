from pydantic import BaseModel, Field

from app.models.user import new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class ArticleRecord(Record):
    id: str = Field(default_factory=new_id)
    title: str
    category: str = "General"
    content: str
    author_id: str
    author_name: str
    last_updated: UtcDatetime = Field(default_factory=utc_now)


class ArticleCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    category: str = Field(default="General", min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=50000)


class ArticleUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    content: str | None = Field(default=None, min_length=1, max_length=50000)


class ArticleListResponse(BaseModel):
    items: list[ArticleRecord]
    total: int
    categories: list[str]
