from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_manager, get_current_user
from app.database import get_db
from app.schemas.article import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleRecord,
    ArticleUpdateRequest,
)
from app.schemas.user import UserRecord
from app.services.articles import ArticleService

router = APIRouter(prefix="/articles", tags=["Knowledge Base"])


@router.get("/", response_model=ArticleListResponse)
async def list_articles(
    category: str | None = Query(default=None, max_length=100),
    search: str | None = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db),
    _current_user: UserRecord = Depends(get_current_user),
):
    """Knowledge base articles, filterable by category and text."""
    return await ArticleService.list_articles(db, category=category, search=search)


@router.get("/{article_id}", response_model=ArticleRecord)
async def get_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    _current_user: UserRecord = Depends(get_current_user),
):
    return await ArticleService.get(db, article_id)


@router.post("/", response_model=ArticleRecord, status_code=201)
async def create_article(
    body: ArticleCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await ArticleService.create(db, current_user, body)


@router.patch("/{article_id}", response_model=ArticleRecord)
async def update_article(
    article_id: str,
    body: ArticleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    return await ArticleService.update(db, current_user, article_id, body.model_dump())


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    await ArticleService.delete(db, current_user, article_id)
