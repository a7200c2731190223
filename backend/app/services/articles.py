from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.schemas.article import ArticleCreateRequest, ArticleListResponse, ArticleRecord
from app.schemas.common import utc_now
from app.schemas.user import UserRecord
from app.services import store
from app.services.audit import AuditService
from app.services.visibility import is_manager_tier


def _require_editor(actor: UserRecord) -> None:
    if not is_manager_tier(actor):
        raise ForbiddenError("Only managers and admins can edit the knowledge base")


class ArticleService:
    @staticmethod
    async def list_articles(
        db: AsyncSession, category: str | None = None, search: str | None = None
    ) -> ArticleListResponse:
        """Articles, most recently updated first, with the full category list."""
        articles = await store.articles.list(db)
        categories = sorted({a.category for a in articles})

        if category:
            articles = [a for a in articles if a.category == category]
        needle = (search or "").strip().lower()
        if needle:
            articles = [
                a
                for a in articles
                if needle in a.title.lower() or needle in a.content.lower()
            ]
        return ArticleListResponse(items=articles, total=len(articles), categories=categories)

    @staticmethod
    async def get(db: AsyncSession, article_id: str) -> ArticleRecord:
        article = await store.articles.get(db, article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    @staticmethod
    async def create(
        db: AsyncSession, author: UserRecord, body: ArticleCreateRequest
    ) -> ArticleRecord:
        _require_editor(author)
        article = ArticleRecord(
            author_id=author.id,
            author_name=author.name,
            **body.model_dump(),
        )
        await store.articles.upsert(db, article)
        await AuditService.record(db, author, "CREATE_ARTICLE", f"Created article: {article.title}")
        return article

    @staticmethod
    async def update(
        db: AsyncSession, actor: UserRecord, article_id: str, changes: dict
    ) -> ArticleRecord:
        _require_editor(actor)
        article = await ArticleService.get(db, article_id)

        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return article

        updated = article.model_copy(update={**changes, "last_updated": utc_now()})
        await store.articles.upsert(db, updated)
        await AuditService.record(db, actor, "UPDATE_ARTICLE", f"Updated article: {updated.title}")
        return updated

    @staticmethod
    async def delete(db: AsyncSession, actor: UserRecord, article_id: str) -> None:
        _require_editor(actor)
        article = await ArticleService.get(db, article_id)
        await store.articles.delete(db, id=article_id)
        await AuditService.record(db, actor, "DELETE_ARTICLE", f"Deleted article: {article.title}")
