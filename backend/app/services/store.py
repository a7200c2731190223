import logging
from operator import attrgetter
from typing import Any, Generic, TypeVar

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.schema import CreateTable

from app.config import get_settings
from app.core.exceptions import ConflictError
from app.database import Base
from app.models import Announcement, Article, AuditLog, Feedback, Note, User
from app.schemas.announcement import AnnouncementRecord
from app.schemas.article import ArticleRecord
from app.schemas.audit_log import AuditLogRecord
from app.schemas.common import Record
from app.schemas.feedback import FeedbackRecord
from app.schemas.note import NoteRecord
from app.schemas.user import UserRecord
from app.services.local_cache import LocalCache, local_cache

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

_MISSING_TABLE_MARKERS = ("no such table", "does not exist", "undefinedtable")


def is_missing_table(exc: BaseException) -> bool:
    text = f"{type(exc).__name__} {exc}".lower()
    return any(marker in text for marker in _MISSING_TABLE_MARKERS)


def merge_prefer_primary(primary: list[R], cached: list[R]) -> list[R]:
    """Union by id. The primary copy wins; cache-only rows are kept."""
    merged = {rec.id: rec for rec in cached}
    merged.update((rec.id, rec) for rec in primary)
    return list(merged.values())


def _by_id(records: list[R]) -> dict[str, R]:
    return {rec.id: rec for rec in records}


def _matches(record: Record, filters: dict[str, Any]) -> bool:
    return all(getattr(record, key) == value for key, value in filters.items())


class TableGateway(Generic[R]):
    """
    Generic list/upsert/delete access to one table.

    Every write lands in the local cache and in the primary store. Reads merge
    both sources by id, preferring the primary copy, and degrade to the cache
    alone when the primary is unreachable or the table has not been created.
    """

    def __init__(
        self,
        model: type[Base],
        record_cls: type[R],
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        cache: LocalCache | None = None,
    ):
        self.model = model
        self.record_cls = record_cls
        self.order_by = order_by
        self.descending = descending
        self.limit = limit
        self._cache = cache

    @property
    def table(self) -> str:
        return self.model.__tablename__

    @property
    def cache(self) -> LocalCache:
        return self._cache or local_cache

    def _report_failure(self, operation: str, exc: BaseException) -> None:
        if is_missing_table(exc):
            ddl = str(CreateTable(self.model.__table__).compile()).strip()
            logger.warning(
                "Table '%s' is missing in the primary store; %s uses the local cache. "
                "Create it with:\n%s;",
                self.table,
                operation,
                ddl,
            )
        else:
            logger.warning(
                "Primary store unavailable for %s on '%s', using the local cache: %s",
                operation,
                self.table,
                exc,
            )

    def _validate(self, rows: list[dict]) -> list[R]:
        records = []
        for row in rows:
            try:
                records.append(self.record_cls.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping malformed cached %s row %s: %s", self.table, row.get("id"), e)
        return records

    def _sorted(self, records: list[R]) -> list[R]:
        if self.order_by:
            records = sorted(records, key=attrgetter(self.order_by), reverse=self.descending)
        if self.limit is not None:
            records = records[: self.limit]
        return records

    async def _cached(self, filters: dict[str, Any]) -> list[R]:
        records = self._validate(await self.cache.load(self.table))
        return [rec for rec in records if _matches(rec, filters)]

    async def list(self, db: AsyncSession, **filters: Any) -> list[R]:
        """List records matching the equality ``filters``."""
        cached = await self._cached(filters)

        stmt = select(self.model).where(
            *(getattr(self.model, key) == value for key, value in filters.items())
        )
        if self.order_by:
            column = getattr(self.model, self.order_by)
            stmt = stmt.order_by(column.desc() if self.descending else column)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)

        try:
            result = await db.execute(stmt)
            primary = [self.record_cls.model_validate(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            await db.rollback()
            self._report_failure("list", e)
            return self._sorted(cached)

        merged = merge_prefer_primary(primary, cached)
        if self.limit is None and _by_id(merged) != _by_id(cached):
            await self.cache.replace(
                self.table,
                [rec.id for rec in cached],
                [rec.model_dump(mode="json") for rec in merged],
            )
        return self._sorted(merged)

    async def get(self, db: AsyncSession, record_id: str) -> R | None:
        records = await self.list(db, id=record_id)
        return records[0] if records else None

    async def upsert(self, db: AsyncSession, record: R) -> R:
        """Write ``record`` to the primary store and the local cache."""
        try:
            await db.merge(self.model(**record.model_dump()))
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.info("Rejected %s write for %s: %s", self.table, record.id, e.orig)
            raise ConflictError(f"The {self.table} record conflicts with an existing one.")
        except (SQLAlchemyError, OSError) as e:
            await db.rollback()
            self._report_failure("upsert", e)

        await self.cache.put(self.table, record.model_dump(mode="json"), max_rows=self.limit)
        return record

    async def delete(self, db: AsyncSession, **filters: Any) -> None:
        """Delete every record matching ``filters`` from both stores."""
        if not filters:
            raise ValueError("Refusing to delete without filters")

        cached = await self._cached(filters)
        await self.cache.remove(self.table, [rec.id for rec in cached])

        try:
            await db.execute(
                delete(self.model).where(
                    *(getattr(self.model, key) == value for key, value in filters.items())
                )
            )
            await db.commit()
        except (SQLAlchemyError, OSError) as e:
            await db.rollback()
            self._report_failure("delete", e)


users = TableGateway(User, UserRecord)
feedbacks = TableGateway(Feedback, FeedbackRecord, order_by="timestamp", descending=True)
audit_logs = TableGateway(
    AuditLog,
    AuditLogRecord,
    order_by="timestamp",
    descending=True,
    limit=get_settings().AUDIT_LOG_LIMIT,
)
notes = TableGateway(Note, NoteRecord)
announcements = TableGateway(Announcement, AnnouncementRecord, order_by="timestamp", descending=True)
articles = TableGateway(Article, ArticleRecord, order_by="last_updated", descending=True)
